"""Stock Sentinel: inventory and margin intelligence from ERP exports.

Ingests item cost, sales, customer and purchase-order exports (CSV or
Excel, with drifting column names and title blocks), then derives
replenishment and pricing indicators: slow movers, dead stock, stockout
risk, reorder points, EOQ and price headroom.

Usage:
    from stock_sentinel import StockSentinel, Thresholds

    sentinel = StockSentinel()
    sentinel.ingest(open("cost.csv", "rb").read(), "cost.csv", "cost")
    sentinel.ingest(open("sales.xlsx", "rb").read(), "sales.xlsx", "sales")

    metrics = sentinel.get_derived_metrics(Thresholds(slow_days=120))
    for item in metrics.dead_stock[:5]:
        print(item.item_code, item.total_cost)
"""

from .config import SentinelSettings, get_settings
from .export import serialize_to_delimited_text
from .ingestion import (
    CostItem,
    CustomerTotal,
    DatasetCategory,
    FileFormat,
    FormatError,
    IngestError,
    IngestResult,
    ItemType,
    ParseError,
    SalesAggregate,
    SupplierDataset,
    SupplierLineItem,
    SupplierTotal,
    ingest,
    ingest_async,
)
from .metrics import (
    SALES_KEY_STRATEGIES,
    CostSummary,
    DerivedItem,
    DerivedMetrics,
    SalesKeyStrategy,
    Thresholds,
    WorkingCapital,
    compute_derived_metrics,
)
from .session import StockSentinel
from .store import DatasetStore

__all__ = [
    "CostItem",
    "CostSummary",
    "CustomerTotal",
    "DatasetCategory",
    "DatasetStore",
    "DerivedItem",
    "DerivedMetrics",
    "FileFormat",
    "FormatError",
    "IngestError",
    "IngestResult",
    "ItemType",
    "ParseError",
    "SALES_KEY_STRATEGIES",
    "SalesAggregate",
    "SalesKeyStrategy",
    "SentinelSettings",
    "StockSentinel",
    "SupplierDataset",
    "SupplierLineItem",
    "SupplierTotal",
    "Thresholds",
    "WorkingCapital",
    "compute_derived_metrics",
    "get_settings",
    "ingest",
    "ingest_async",
    "serialize_to_delimited_text",
]

__version__ = "0.1.0"
