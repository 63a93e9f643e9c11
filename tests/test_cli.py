"""Tests for the command-line entry point."""

import pytest
from stock_sentinel.__main__ import main


@pytest.fixture
def exports(tmp_path, cost_csv, sales_xlsx, customer_csv, supplier_csv):
    paths = {
        "cost": tmp_path / "item_cost.csv",
        "sales": tmp_path / "sales.xlsx",
        "customers": tmp_path / "customers.csv",
        "suppliers": tmp_path / "po.csv",
    }
    paths["cost"].write_bytes(cost_csv)
    paths["sales"].write_bytes(sales_xlsx)
    paths["customers"].write_bytes(customer_csv)
    paths["suppliers"].write_bytes(supplier_csv)
    return paths


class TestAnalyze:
    def test_report(self, exports, capsys):
        main(
            [
                "analyze",
                "--cost", str(exports["cost"]),
                "--sales", str(exports["sales"]),
                "--customers", str(exports["customers"]),
                "--suppliers", str(exports["suppliers"]),
            ]
        )
        out = capsys.readouterr().out
        assert "STOCK SENTINEL REPORT" in out
        assert "Items:          3" in out
        assert "Avg margin:     26.7%" in out
        assert "Header row: 2" in out
        assert "Beta LLC" in out
        assert "Acme Supply" in out

    def test_threshold_override_and_export(self, exports, tmp_path, capsys):
        out_dir = tmp_path / "out"
        main(
            [
                "analyze",
                "--cost", str(exports["cost"]),
                "--dead-cost", "5",
                "--export-dir", str(out_dir),
            ]
        )
        dead = (out_dir / "dead_stock.csv").read_text().splitlines()
        assert len(dead) == 4
        assert dead[1].startswith('"ABC-200"')
        assert (out_dir / "price_opps.csv").read_bytes() == b""

    def test_invalid_threshold(self, exports, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["analyze", "--cost", str(exports["cost"]), "--target-margin", "1.5"])
        assert exc.value.code == 1
        assert "invalid thresholds" in capsys.readouterr().err

    def test_wrong_extension(self, exports, tmp_path, capsys):
        bad = tmp_path / "cost.xlsx"
        bad.write_bytes(exports["sales"].read_bytes())
        with pytest.raises(SystemExit) as exc:
            main(["analyze", "--cost", str(bad)])
        assert exc.value.code == 1
        assert "cost.xlsx" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["analyze", "--cost", str(tmp_path / "nope.csv")])
        assert "Path not found" in capsys.readouterr().err


class TestDatasets:
    def test_lists_slots(self, capsys):
        main(["datasets"])
        out = capsys.readouterr().out
        assert "cost" in out
        assert "Item Cost" in out
        assert "PO Details" in out
        assert ".csv, .xls, .xlsx" in out

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit):
            main([])
