"""Tests for the dataset store, the analysis session and CSV export.

Tests cover:
- Replace-on-reingest: a new upload replaces the slot wholesale
- Failed ingestion leaves previously loaded datasets untouched
- Metrics recomputed from the current datasets, None without cost data
- Async ingestion through the session
- Delimited export: header line, quoted values, empty infinities
"""

import math

import pytest
from stock_sentinel import (
    DatasetCategory,
    FormatError,
    ParseError,
    Thresholds,
    serialize_to_delimited_text,
)
from stock_sentinel.ingestion.models import CustomerTotal

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TestDatasetStore:
    def test_empty_views(self, store):
        assert store.cost_items == []
        assert store.sales_map == {}
        assert store.customers == []
        assert store.suppliers.suppliers == []
        assert store.status() == {
            "cost": False,
            "sales": False,
            "customer": False,
            "supplier": False,
        }

    def test_reingest_replaces(self, sentinel, store):
        sentinel.ingest(b"Item,Qty,Amount\nA,1,10\nB,2,20\n", "s1.csv", "sales")
        sentinel.ingest(b"Item,Qty,Amount\nC,3,30\n", "s2.csv", "sales")

        assert set(store.sales_map) == {"C"}
        assert store.result("sales").source == "s2.csv"
        assert store.revision == 2

    def test_slots_are_independent(self, sentinel, store, cost_csv, customer_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        sentinel.ingest(customer_csv, "customers.csv", DatasetCategory.CUSTOMER)
        assert len(store.cost_items) == 3
        assert len(store.customers) == 2
        assert store.status()["sales"] is False

    def test_supplier_line_items_count_as_loaded(self, sentinel, store):
        data = b"Vendor,Item,Quantity,Amount\nAcme,W-1,1,10\n"
        sentinel.ingest(data, "po.csv", "supplier")
        assert store.is_loaded("supplier")
        assert store.status()["supplier"] is True

    def test_clear(self, sentinel, store, cost_csv, customer_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        sentinel.ingest(customer_csv, "customers.csv", "customer")
        store.clear("cost")
        assert store.get("cost") is None
        assert store.is_loaded("customer")
        store.clear()
        assert not store.is_loaded("customer")


class TestFailedIngestion:
    def test_parse_error_keeps_previous_dataset(self, sentinel, store, sales_csv):
        sentinel.ingest(sales_csv, "sales.csv", "sales")
        revision = store.revision

        with pytest.raises(ParseError):
            sentinel.ingest(b"not a workbook", "sales.xlsx", "sales")

        assert "ABC-100" in store.sales_map
        assert store.result("sales").source == "sales.csv"
        assert store.revision == revision

    def test_format_error_keeps_previous_dataset(self, sentinel, store, cost_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        with pytest.raises(FormatError):
            sentinel.ingest(cost_csv, "cost.xlsx", "cost")
        assert len(store.cost_items) == 3


# ---------------------------------------------------------------------------
# Session metrics
# ---------------------------------------------------------------------------


class TestSessionMetrics:
    def test_none_without_cost_data(self, sentinel, sales_csv):
        sentinel.ingest(sales_csv, "sales.csv", "sales")
        assert sentinel.get_derived_metrics() is None

    def test_joins_cost_and_sales(self, sentinel, cost_csv, sales_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        sentinel.ingest(sales_csv, "sales.csv", "sales")
        m = sentinel.get_derived_metrics()

        by_code = {i.item_code: i for i in m.items}
        assert by_code["ABC-100"].sales_key == "ABC-100"
        assert by_code["ABC-100"].annual_sales == 20
        assert by_code["ABC-200"].sales_key == "ABC-200-ReCert"
        assert by_code["ABC-200"].lead_time_days == 28
        assert by_code["FREE-1"].sales_key is None

    def test_sales_reingest_changes_metrics(self, sentinel, cost_csv, sales_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        sentinel.ingest(sales_csv, "sales.csv", "sales")
        before = sentinel.get_derived_metrics()

        sentinel.ingest(b"Item,Qty,Amount\nABC-100,365,3650\n", "s.csv", "sales")
        after = sentinel.get_derived_metrics()

        assert before.items[0].annual_sales == 20
        assert after.items[0].annual_sales == 365
        assert after.items[1].sales_key is None

    def test_explicit_thresholds(self, sentinel, cost_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        m = sentinel.get_derived_metrics(Thresholds(slow_cost=50, dead_cost=50))
        assert m.thresholds.slow_cost == 50
        # ABC-100 ($120) and ABC-200 ($300) unsold
        assert [i.item_code for i in m.dead_stock] == ["ABC-200", "ABC-100"]

    def test_default_thresholds_from_settings(self, store, settings, cost_csv):
        from stock_sentinel import StockSentinel

        custom = settings.model_copy(update={"dead_cost": 100.0, "top_n": 1})
        sentinel = StockSentinel(store=store, settings=custom)
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        m = sentinel.get_derived_metrics()
        assert [i.item_code for i in m.dead_stock] == ["ABC-200", "ABC-100"]
        assert len(m.top_profit) == 1

    @pytest.mark.asyncio
    async def test_ingest_async(self, sentinel, store, customer_csv):
        result = await sentinel.ingest_async(customer_csv, "c.csv", "customer")
        assert store.result("customer") is result
        assert store.customers[0].customer == "Beta LLC"


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


class TestExport:
    def test_empty(self):
        assert serialize_to_delimited_text([]) == b""

    def test_header_and_quoted_values(self):
        rows = [{"item": "A", "qty": 2}, {"item": 'say "hi"', "qty": 3.5}]
        assert serialize_to_delimited_text(rows) == (
            b'item,qty\n"A","2"\n"say ""hi""","3.5"'
        )

    def test_header_quoted_when_needed(self):
        rows = [{"a,b": 1, 'say "x"': 2}]
        assert serialize_to_delimited_text(rows) == (
            b'"a,b","say ""x"""\n"1","2"'
        )

    def test_infinite_and_missing_are_empty(self):
        rows = [{"days": math.inf, "note": None}]
        assert serialize_to_delimited_text(rows) == b'days,note\n"",""'

    def test_models(self):
        rows = [CustomerTotal(customer="Acme", total_revenue=1500)]
        assert serialize_to_delimited_text(rows) == (
            b'customer,total_revenue\n"Acme","1500.0"'
        )

    def test_derived_items(self, sentinel, cost_csv):
        sentinel.ingest(cost_csv, "cost.csv", "cost")
        m = sentinel.get_derived_metrics()
        text = serialize_to_delimited_text(m.items).decode("utf-8")
        lines = text.split("\n")

        assert len(lines) == 4
        header = lines[0].split(",")
        assert header[:3] == ["item_code", "full_item", "item_type"]
        assert "days_of_inventory" in header
        assert lines[1].startswith('"ABC-100","ABC-100 : Widget","New",')
        # unsold: days of inventory is blank, not "inf"
        assert "inf" not in text
