"""Shared fixtures: small ERP exports as CSV bytes and in-memory workbooks."""

import io

import pandas as pd
import pytest
from stock_sentinel import DatasetStore, SentinelSettings, StockSentinel

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def workbook_bytes(rows: list[list]) -> bytes:
    """Write a grid (title block included) to .xlsx bytes, no header row."""
    buf = io.BytesIO()
    pd.DataFrame(rows).to_excel(buf, header=False, index=False, engine="openpyxl")
    return buf.getvalue()


def csv_bytes(text: str) -> bytes:
    return text.strip().encode("utf-8") + b"\n"


# ---------------------------------------------------------------------------
# Fixture data
# ---------------------------------------------------------------------------

COST_CSV = """
Item,Average Item Rate,Average of Est. Unit Cost,Quantity
ABC-100 : Widget,10.00,6.00,20
ABC-200 : Gadget ReCert,50.00,30.00,10
FREE-1 : Sample,0,2.00,5
Total,,,35
"""

SALES_HEADER = ["Item", "Description", "Qty", "Amount"]
SALES_ROWS = [
    ["ABC-100", "Widget", 12, 120.0],
    ["ABC-200-ReCert", "Gadget", 4, 200.0],
    ["ABC-100", "Widget (dup)", 8, 80.0],
    ["Inventory Item", "", 99, 0.0],
    ["ZERO-1", "No movement", 0, 0.0],
]


@pytest.fixture
def cost_csv() -> bytes:
    return csv_bytes(COST_CSV)


@pytest.fixture
def sales_csv() -> bytes:
    lines = [",".join(SALES_HEADER)]
    lines += [",".join(str(c) for c in row) for row in SALES_ROWS]
    return csv_bytes("\n".join(lines))


@pytest.fixture
def sales_xlsx() -> bytes:
    """Same sales rows as ``sales_csv`` below a two-line title block."""
    title = [
        ["Acme Holdings", "", "", ""],
        ["Sales by Item Summary", "", "", ""],
    ]
    return workbook_bytes(title + [SALES_HEADER] + SALES_ROWS)


@pytest.fixture
def customer_csv() -> bytes:
    return csv_bytes(
        """
Customer,Amount
Acme Corp,700
Total - Acme Corp,1500
Total - IC-Sister Co,900
Total - Zeta Ltd,0
Total - Beta LLC,2500
"""
    )


@pytest.fixture
def supplier_csv() -> bytes:
    return csv_bytes(
        """
Vendor,Item,Quantity,Amount,Date
Acme Supply,WID-1,10,250.00,03/15/2025
Acme Supply,WID-2,5,120.00,2025-03-20
Total - Acme Supply,,15,370.00,
Total - Internal Transfers,,2,50.00,
"""
    )


@pytest.fixture
def settings() -> SentinelSettings:
    return SentinelSettings(_env_file=None)


@pytest.fixture
def store() -> DatasetStore:
    return DatasetStore()


@pytest.fixture
def sentinel(store, settings) -> StockSentinel:
    return StockSentinel(store=store, settings=settings)


@pytest.fixture
def make_workbook():
    return workbook_bytes
