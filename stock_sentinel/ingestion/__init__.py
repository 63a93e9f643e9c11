"""Schema-tolerant ingestion of ERP tabular exports.

Each upload slot (item cost, sales by item, sales by customer, PO
details) has one rule table of column aliases and filters. Files are
decoded by the tabular reader, workbook headers are located by majority
vote, and every row is read through the same field picker, so renamed
or reordered columns still resolve.

Usage:
    from stock_sentinel.ingestion import ingest

    result = ingest(open("cost.csv", "rb").read(), "cost.csv", "cost")
    print(result.summary)
"""

from .errors import FormatError, IngestError, ParseError
from .fields import pick, safe_float
from .headers import find_column, find_header_row
from .models import (
    CostItem,
    CustomerTotal,
    DatasetCategory,
    FileFormat,
    IngestResult,
    ItemType,
    SalesAggregate,
    SupplierDataset,
    SupplierLineItem,
    SupplierTotal,
)
from .reader import read_delimited, read_workbook_grid
from .rules import RULES, DatasetRules, rules_for
from .service import ingest, ingest_async

__all__ = [
    "CostItem",
    "CustomerTotal",
    "DatasetCategory",
    "DatasetRules",
    "FileFormat",
    "FormatError",
    "IngestError",
    "IngestResult",
    "ItemType",
    "ParseError",
    "RULES",
    "SalesAggregate",
    "SupplierDataset",
    "SupplierLineItem",
    "SupplierTotal",
    "find_column",
    "find_header_row",
    "ingest",
    "ingest_async",
    "pick",
    "read_delimited",
    "read_workbook_grid",
    "rules_for",
    "safe_float",
]
