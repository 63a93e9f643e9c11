"""Analysis session: one store, ingestion in, metrics out.

Usage:
    sentinel = StockSentinel()
    sentinel.ingest(cost_bytes, "item_cost.csv", "cost")
    sentinel.ingest(sales_bytes, "sales_by_item.xlsx", "sales")

    metrics = sentinel.get_derived_metrics(Thresholds(slow_cost=500))
    csv_bytes = serialize_to_delimited_text(metrics.slow_movers)

Pass a ``DatasetStore`` to share one between callers; a fresh store is
created when none is given.
"""

from __future__ import annotations

from .config import SentinelSettings, get_settings
from .ingestion.models import DatasetCategory, FileFormat, IngestResult
from .ingestion.service import ingest, ingest_async
from .metrics import DerivedMetrics, Thresholds, compute_derived_metrics
from .store import DatasetStore


class StockSentinel:
    """Ingests exports into a dataset store and derives metrics from it."""

    def __init__(
        self,
        store: DatasetStore | None = None,
        settings: SentinelSettings | None = None,
    ):
        self.store = store if store is not None else DatasetStore()
        self.settings = settings or get_settings()

    @property
    def default_thresholds(self) -> Thresholds:
        return Thresholds.from_settings(self.settings)

    def ingest(
        self,
        data: bytes,
        filename: str,
        category: DatasetCategory | str,
        file_format: FileFormat | str | None = None,
    ) -> IngestResult:
        """Ingest one file and replace the slot's dataset.

        Raises:
            FormatError, ParseError: The store is left unchanged.
        """
        result = ingest(
            data,
            filename,
            category,
            file_format,
            header_scan_rows=self.settings.header_scan_rows,
        )
        self.store.replace(result)
        return result

    async def ingest_async(
        self,
        data: bytes,
        filename: str,
        category: DatasetCategory | str,
        file_format: FileFormat | str | None = None,
    ) -> IngestResult:
        """Async variant of :meth:`ingest`; decoding runs off the event loop."""
        result = await ingest_async(
            data,
            filename,
            category,
            file_format,
            header_scan_rows=self.settings.header_scan_rows,
        )
        self.store.replace(result)
        return result

    def get_derived_metrics(
        self, thresholds: Thresholds | None = None
    ) -> DerivedMetrics | None:
        """Recompute all derived metrics from the current datasets.

        Returns None until cost data has been loaded.
        """
        return compute_derived_metrics(
            self.store.cost_items,
            self.store.sales_map,
            thresholds or self.default_thresholds,
            top_n=self.settings.top_n,
        )
