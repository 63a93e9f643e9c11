"""Dataset normalizers.

Each normalizer turns adapted source rows (see :mod:`.sources`) into one
typed dataset. Normalizers never see the physical format: they read
fields by name through ``row.get()`` and apply the slot's filters.

Rows that cannot supply a required field are dropped, not failed. The
drop count is reported for diagnostics only.

To add a new upload slot:
1. Add a rule table in rules.py
2. Subclass BaseNormalizer and implement normalize()
3. Register it in NORMALIZERS
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .fields import is_present, parse_date, safe_float, to_text
from .models import (
    CostItem,
    CustomerTotal,
    DatasetCategory,
    ItemType,
    SalesAggregate,
    SupplierDataset,
    SupplierLineItem,
    SupplierTotal,
)
from .rules import (
    COST_RULES,
    CUSTOMER_RULES,
    INTERCOMPANY_CUSTOMER,
    INTERNAL_SUPPLIER,
    ITEM_CODE_SEPARATOR,
    SALES_ITEM_PLACEHOLDER,
    SALES_RULES,
    SUBTOTAL_PREFIX,
    SUPPLIER_RULES,
    DatasetRules,
)
from .sources import RowAccessor


@dataclass
class Normalized:
    """Output of one normalizer run."""

    dataset: Any
    rows_read: int = 0
    rows_dropped: int = 0


class BaseNormalizer(ABC):
    """Turns adapted rows into one typed dataset."""

    rules: DatasetRules

    @property
    def category(self) -> DatasetCategory:
        return self.rules.category

    @abstractmethod
    def normalize(self, rows: Iterable[RowAccessor]) -> Normalized:
        """Build the dataset from adapted rows."""
        ...


# ---------------------------------------------------------------------------
# Cost
# ---------------------------------------------------------------------------


def build_cost_item(
    full_item: str, unit_price: float, unit_cost: float, qty: float
) -> CostItem:
    """Derive per-row cost figures from the four source values."""
    if unit_price > 0:
        profit_per_unit = unit_price - unit_cost
        profit_margin = (unit_price - unit_cost) / unit_price * 100
    else:
        profit_per_unit = 0.0
        profit_margin = 0.0

    return CostItem(
        item_code=full_item.split(ITEM_CODE_SEPARATOR)[0] if full_item else "",
        full_item=full_item,
        item_type=ItemType.RECERT if "recert" in full_item.lower() else ItemType.NEW,
        unit_price=unit_price,
        unit_cost=unit_cost,
        quantity=qty,
        profit_per_unit=profit_per_unit,
        profit_margin=profit_margin,
        total_profit=profit_per_unit * qty,
        total_revenue=unit_price * qty,
        total_cost=unit_cost * qty,
    )


class CostNormalizer(BaseNormalizer):
    """Item cost export → list[CostItem].

    Only rows carrying both an average rate and an average unit cost are
    item rows; the rest are report subtotals and footers.
    """

    rules = COST_RULES

    def normalize(self, rows: Iterable[RowAccessor]) -> Normalized:
        items: list[CostItem] = []
        read = 0
        for row in rows:
            read += 1
            raw_price = row.get("unit_price")
            raw_cost = row.get("unit_cost")
            if not (is_present(raw_price) and is_present(raw_cost)):
                continue
            items.append(
                build_cost_item(
                    to_text(row.get("item")),
                    safe_float(raw_price),
                    safe_float(raw_cost),
                    safe_float(row.get("quantity")),
                )
            )
        return Normalized(items, read, read - len(items))


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


class SalesNormalizer(BaseNormalizer):
    """Sales-by-item export → dict[item, SalesAggregate].

    Repeated item keys accumulate quantity and revenue.
    """

    rules = SALES_RULES

    def normalize(self, rows: Iterable[RowAccessor]) -> Normalized:
        by_item: dict[str, SalesAggregate] = {}
        read = 0
        kept = 0
        for row in rows:
            read += 1
            item = to_text(row.get("item")).strip()
            qty = safe_float(row.get("qty"))
            if not item or qty <= 0 or item == SALES_ITEM_PLACEHOLDER:
                continue
            revenue = safe_float(row.get("revenue"))
            agg = by_item.get(item)
            if agg is None:
                agg = SalesAggregate(
                    item=item, description=to_text(row.get("description"))
                )
                by_item[item] = agg
            agg.total_qty_sold += qty
            agg.total_revenue += revenue
            kept += 1
        return Normalized(by_item, read, read - kept)


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------


class CustomerNormalizer(BaseNormalizer):
    """Sales-by-customer export → customer subtotals, largest first."""

    rules = CUSTOMER_RULES

    def normalize(self, rows: Iterable[RowAccessor]) -> Normalized:
        totals: list[CustomerTotal] = []
        read = 0
        for row in rows:
            read += 1
            label = to_text(row.get("customer"))
            amount = safe_float(row.get("amount"))
            if not SUBTOTAL_PREFIX.match(label) or amount <= 0:
                continue
            name = SUBTOTAL_PREFIX.sub("", label, count=1)
            if INTERCOMPANY_CUSTOMER.search(name):
                continue
            totals.append(CustomerTotal(customer=name, total_revenue=amount))

        totals.sort(key=lambda c: c.total_revenue, reverse=True)
        return Normalized(totals, read, read - len(totals))


# ---------------------------------------------------------------------------
# Supplier
# ---------------------------------------------------------------------------


class SupplierNormalizer(BaseNormalizer):
    """PO detail export → supplier subtotals and detail line items.

    A subtotal row ("Total - Vendor") feeds the supplier ranking; any
    other row naming a supplier and an item with a positive cost is a
    line item. The two sets never share a row.
    """

    rules = SUPPLIER_RULES

    def normalize(self, rows: Iterable[RowAccessor]) -> Normalized:
        suppliers: list[SupplierTotal] = []
        lines: list[SupplierLineItem] = []
        read = 0
        for row in rows:
            read += 1
            vendor = to_text(row.get("supplier"))
            total = safe_float(row.get("total"))
            qty = safe_float(row.get("quantity"))

            if SUBTOTAL_PREFIX.match(vendor):
                name = SUBTOTAL_PREFIX.sub("", vendor, count=1)
                if total > 0 and not INTERNAL_SUPPLIER.search(name):
                    suppliers.append(
                        SupplierTotal(
                            supplier=name, total_cost=total, total_quantity=qty
                        )
                    )
                continue

            item = to_text(row.get("item"))
            if vendor and item and total > 0:
                lines.append(
                    SupplierLineItem(
                        supplier=vendor,
                        item=item,
                        total_cost=total,
                        quantity=qty,
                        date=parse_date(row.get("date")),
                    )
                )

        suppliers.sort(key=lambda s: s.total_cost, reverse=True)
        dataset = SupplierDataset(suppliers=suppliers, line_items=lines)
        return Normalized(dataset, read, read - len(suppliers) - len(lines))


NORMALIZERS: dict[DatasetCategory, BaseNormalizer] = {
    n.category: n
    for n in (
        CostNormalizer(),
        SalesNormalizer(),
        CustomerNormalizer(),
        SupplierNormalizer(),
    )
}


def normalizer_for(category: DatasetCategory | str) -> BaseNormalizer:
    return NORMALIZERS[DatasetCategory(category)]
