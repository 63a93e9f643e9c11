"""In-memory dataset store.

Holds the current dataset for each upload slot. A new ingestion replaces
the slot's dataset wholesale; nothing is merged or patched. Readers
always see either the previous dataset or the new one, never a mix,
because the slot is reassigned only after ingestion has fully finished.

Nothing is persisted: the store lives as long as the process.
"""

from __future__ import annotations

import logging
from typing import Any

from .ingestion.models import (
    CostItem,
    CustomerTotal,
    DatasetCategory,
    IngestResult,
    SalesAggregate,
    SupplierDataset,
)

logger = logging.getLogger("sentinel.store")


class DatasetStore:
    """Current dataset per upload slot, replaced on re-ingest."""

    def __init__(self) -> None:
        self._results: dict[DatasetCategory, IngestResult] = {}
        self._revision = 0

    def replace(self, result: IngestResult) -> None:
        """Install a completed ingestion as the slot's current dataset."""
        previous = self._results.get(result.category)
        self._results[result.category] = result
        self._revision += 1
        logger.info(
            "%s dataset replaced: %s (%d records, was %s)",
            result.category.value,
            result.source,
            result.record_count,
            previous.source if previous else "empty",
        )

    def clear(self, category: DatasetCategory | str | None = None) -> None:
        """Drop one slot's dataset, or all of them."""
        if category is None:
            self._results.clear()
        else:
            self._results.pop(DatasetCategory(category), None)
        self._revision += 1

    def result(self, category: DatasetCategory | str) -> IngestResult | None:
        """The ingestion result currently held for a slot."""
        return self._results.get(DatasetCategory(category))

    def get(self, category: DatasetCategory | str) -> Any:
        """The dataset currently held for a slot, or None."""
        result = self.result(category)
        return result.dataset if result is not None else None

    def is_loaded(self, category: DatasetCategory | str) -> bool:
        result = self.result(category)
        return result is not None and result.record_count > 0

    @property
    def revision(self) -> int:
        """Incremented on every replace or clear."""
        return self._revision

    # -----------------------------------------------------------------
    # Typed views (empty when the slot has not been loaded)
    # -----------------------------------------------------------------

    @property
    def cost_items(self) -> list[CostItem]:
        return self.get(DatasetCategory.COST) or []

    @property
    def sales_map(self) -> dict[str, SalesAggregate]:
        return self.get(DatasetCategory.SALES) or {}

    @property
    def customers(self) -> list[CustomerTotal]:
        return self.get(DatasetCategory.CUSTOMER) or []

    @property
    def suppliers(self) -> SupplierDataset:
        dataset = self.get(DatasetCategory.SUPPLIER)
        return dataset if dataset is not None else SupplierDataset()

    def status(self) -> dict[str, bool]:
        """Loaded flag per slot, keyed by slot name."""
        return {c.value: self.is_loaded(c) for c in DatasetCategory}
