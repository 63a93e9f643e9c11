"""Per-dataset rule tables.

Each upload slot has exactly one rule table. Both physical formats
(delimited rows and workbook grids) resolve fields through the same
alias lists, so a CSV and an XLSX export of the same report always
produce the same dataset.

Alias order matters: exact matches are tried alias by alias before any
containment match, so the most specific name goes first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import DatasetCategory

# ---------------------------------------------------------------------------
# Row classification patterns
# ---------------------------------------------------------------------------

# Subtotal rows in NetSuite-style summary exports: "Total - Acme Corp"
SUBTOTAL_PREFIX = re.compile(r"^total - ", re.IGNORECASE)

# Intercompany customers are not real revenue
INTERCOMPANY_CUSTOMER = re.compile(r"ic-|intercompany|inter-company", re.IGNORECASE)

# Internal transfers are not real supplier spend
INTERNAL_SUPPLIER = re.compile(r"internal|intercompany", re.IGNORECASE)

# Header text that leaks into the item column of sales exports
SALES_ITEM_PLACEHOLDER = "Inventory Item"

# Separator between item code and item name in composite labels
ITEM_CODE_SEPARATOR = " : "

DELIMITED_ONLY = (".csv",)
ANY_TABULAR = (".csv", ".xls", ".xlsx")


@dataclass(frozen=True)
class DatasetRules:
    """Aliases and format constraints for one upload slot."""

    category: DatasetCategory
    accepted_extensions: tuple[str, ...]
    header_tokens: tuple[str, ...]
    fields: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def aliases(self, name: str) -> tuple[str, ...]:
        return self.fields[name]


COST_RULES = DatasetRules(
    category=DatasetCategory.COST,
    accepted_extensions=DELIMITED_ONLY,
    header_tokens=(
        "item",
        "average item rate",
        "average of est. unit cost",
        "quantity",
    ),
    fields={
        "item": ("Item",),
        "unit_price": ("Average Item Rate",),
        "unit_cost": ("Average of Est. Unit Cost",),
        "quantity": ("Quantity", "Qty"),
    },
)

SALES_RULES = DatasetRules(
    category=DatasetCategory.SALES,
    accepted_extensions=ANY_TABULAR,
    header_tokens=("item", "qty", "quantity", "amount", "total", "description"),
    fields={
        "item": ("Item", "Inventory Item", "Item Name", "Product"),
        "description": ("Description", "ItemDesc", "Name", "Memo"),
        "qty": ("Qty", "QtySold", "Quantity", "Quantity Sold"),
        "revenue": ("TotalRevenue", "Amount", "Total", "Net Amount", "Sales Amount"),
    },
)

CUSTOMER_RULES = DatasetRules(
    category=DatasetCategory.CUSTOMER,
    accepted_extensions=ANY_TABULAR,
    header_tokens=("customer", "amount", "total", "net amount"),
    fields={
        "customer": ("Customer", "Name"),
        "amount": ("Total", "Amount", "Net Amount", "TotalRevenue"),
    },
)

SUPPLIER_RULES = DatasetRules(
    category=DatasetCategory.SUPPLIER,
    accepted_extensions=ANY_TABULAR,
    header_tokens=("vendor", "supplier", "item", "quantity", "amount", "total"),
    fields={
        "supplier": ("Vendor", "Supplier", "Name"),
        "item": ("Item", "Item Name", "Product"),
        "total": ("TotalCost", "Amount", "Total", "Net Amount"),
        "quantity": ("Quantity", "Qty"),
        "date": ("Date",),
    },
)

RULES: dict[DatasetCategory, DatasetRules] = {
    r.category: r for r in (COST_RULES, SALES_RULES, CUSTOMER_RULES, SUPPLIER_RULES)
}


def rules_for(category: DatasetCategory | str) -> DatasetRules:
    """Look up the rule table for an upload slot."""
    return RULES[DatasetCategory(category)]
