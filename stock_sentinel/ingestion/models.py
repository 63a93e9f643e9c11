"""Canonical dataset models.

Every normalizer maps its source rows to these records. Field values are
already coerced: numbers are floats, labels are trimmed strings, and
derived per-row figures (margin, totals) are computed at ingestion.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DatasetCategory(str, Enum):
    """Upload slot a file is ingested into."""

    COST = "cost"
    SALES = "sales"
    CUSTOMER = "customer"
    SUPPLIER = "supplier"

    @property
    def display_name(self) -> str:
        return {
            DatasetCategory.COST: "Item Cost",
            DatasetCategory.SALES: "Sales by Item",
            DatasetCategory.CUSTOMER: "Sales by Customer",
            DatasetCategory.SUPPLIER: "PO Details",
        }[self]


class FileFormat(str, Enum):
    """Physical encoding of an uploaded file."""

    DELIMITED = "delimited"
    WORKBOOK = "workbook"


class ItemType(str, Enum):
    """Inventory condition, inferred from the item label."""

    NEW = "New"
    RECERT = "ReCert"


# ---------------------------------------------------------------------------
# Dataset records
# ---------------------------------------------------------------------------


class CostItem(BaseModel):
    """One row of the item cost export."""

    item_code: str
    full_item: str = ""
    item_type: ItemType = ItemType.NEW
    unit_price: float = 0.0
    unit_cost: float = 0.0
    quantity: float = 0.0
    profit_per_unit: float = 0.0
    profit_margin: float = 0.0
    total_profit: float = 0.0
    total_revenue: float = 0.0
    total_cost: float = 0.0

    @property
    def is_recert(self) -> bool:
        return self.item_type == ItemType.RECERT


class SalesAggregate(BaseModel):
    """Running sales totals for one item key."""

    item: str
    description: str = ""
    total_qty_sold: float = 0.0
    total_revenue: float = 0.0


class CustomerTotal(BaseModel):
    """Subtotal row from a sales-by-customer export."""

    customer: str
    total_revenue: float = 0.0


class SupplierTotal(BaseModel):
    """Subtotal row from a purchase-order export."""

    supplier: str
    total_cost: float = 0.0
    total_quantity: float = 0.0


class SupplierLineItem(BaseModel):
    """Detail (non-subtotal) row from a purchase-order export."""

    supplier: str
    item: str
    total_cost: float = 0.0
    quantity: float = 0.0
    date: datetime.date | None = None


class SupplierDataset(BaseModel):
    """Both result sets produced from one purchase-order export."""

    suppliers: list[SupplierTotal] = Field(default_factory=list)
    line_items: list[SupplierLineItem] = Field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return sum(s.total_cost for s in self.suppliers)

    def __len__(self) -> int:
        return len(self.suppliers) + len(self.line_items)


# ---------------------------------------------------------------------------
# Ingestion Result
# ---------------------------------------------------------------------------


class IngestResult(BaseModel):
    """Result of ingesting one file into one upload slot."""

    category: DatasetCategory
    source: str
    file_format: FileFormat
    dataset: Any = None
    rows_read: int = 0
    rows_dropped: int = 0
    header_row: int | None = None
    warnings: list[str] = Field(default_factory=list)
    processing_time_ms: int = 0

    @property
    def record_count(self) -> int:
        """Number of records in the normalized dataset."""
        if self.dataset is None:
            return 0
        return len(self.dataset)

    @property
    def summary(self) -> str:
        """Human-readable summary of the ingestion result."""
        parts: list[str] = []
        parts.append(f"Dataset: {self.category.display_name}")
        parts.append(f"Source: {self.source} ({self.file_format.value})")
        if self.header_row is not None:
            parts.append(f"Header row: {self.header_row}")
        parts.append(f"Rows read: {self.rows_read:,}")
        parts.append(f"Rows dropped: {self.rows_dropped:,}")
        parts.append(f"Records: {self.record_count:,}")
        if self.warnings:
            parts.append(f"Warnings: {len(self.warnings)}")
        return "\n".join(parts)
