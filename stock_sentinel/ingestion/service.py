"""Ingestion entry point: bytes in, typed dataset out.

Usage:
    from stock_sentinel.ingestion import ingest

    result = ingest(data, "sales_by_item.xlsx", "sales")
    print(result.summary)
    sales_map = result.dataset

The extension is validated against the upload slot before any decoding.
Delimited files go straight to the normalizer; workbooks first have
their header row located, then their rows are read positionally through
the same rule table.
"""

from __future__ import annotations

import asyncio
import logging
import time

from .errors import FormatError
from .headers import HEADER_SCAN_ROWS, find_header_row, slice_from_header
from .models import DatasetCategory, FileFormat, IngestResult
from .normalizers import normalizer_for
from .reader import (
    ensure_extension,
    format_for,
    read_delimited,
    read_workbook_grid,
)
from .rules import rules_for
from .sources import ColumnIndex, iter_grid, iter_records

logger = logging.getLogger("sentinel.ingestion")


def ingest(
    data: bytes,
    filename: str,
    category: DatasetCategory | str,
    file_format: FileFormat | str | None = None,
    header_scan_rows: int = HEADER_SCAN_ROWS,
) -> IngestResult:
    """Decode and normalize one uploaded file.

    Args:
        data: Raw file contents.
        filename: Original filename; its extension selects the decoder.
        category: Upload slot (cost, sales, customer, supplier).
        file_format: Declared format. Inferred from the extension when
            omitted; must agree with it when given.
        header_scan_rows: Rows searched for the header in workbooks.

    Returns:
        IngestResult holding the normalized dataset.

    Raises:
        FormatError: Extension not accepted by the slot, or declared
            format disagrees with the extension.
        ParseError: The file could not be decoded.
    """
    start = time.monotonic()
    category = DatasetCategory(category)
    rules = rules_for(category)

    ext = ensure_extension(filename, rules.accepted_extensions, category.value)
    actual = format_for(ext)
    if file_format is not None and FileFormat(file_format) != actual:
        raise FormatError(
            f'Declared {FileFormat(file_format).value} format but "{filename}" '
            f"is {actual.value}",
            category=category.value,
            filename=filename,
        )

    warnings: list[str] = []
    header_row: int | None = None

    if actual == FileFormat.DELIMITED:
        rows = read_delimited(data, filename, category.value)
        accessors = iter_records(rows, rules)
    else:
        grid = read_workbook_grid(data, filename, category.value)
        header_row = find_header_row(grid, rules.header_tokens, header_scan_rows)
        header, body = slice_from_header(grid, header_row)
        index = ColumnIndex(header, rules)
        if index.missing:
            warnings.append(f"No column found for: {', '.join(index.missing)}")
        accessors = iter_grid(index, body)

    outcome = normalizer_for(category).normalize(accessors)

    result = IngestResult(
        category=category,
        source=filename,
        file_format=actual,
        dataset=outcome.dataset,
        rows_read=outcome.rows_read,
        rows_dropped=outcome.rows_dropped,
        header_row=header_row,
        warnings=warnings,
        processing_time_ms=int((time.monotonic() - start) * 1000),
    )

    if result.record_count == 0:
        result.warnings.append(f"No {category.display_name} records found")
        logger.warning(
            "%s: no records accepted from %s (%d rows read)",
            category.value,
            filename,
            outcome.rows_read,
        )

    logger.info(
        "%s: ingested %s: %d rows read, %d dropped, %d records",
        category.value,
        filename,
        result.rows_read,
        result.rows_dropped,
        result.record_count,
    )
    return result


async def ingest_async(
    data: bytes,
    filename: str,
    category: DatasetCategory | str,
    file_format: FileFormat | str | None = None,
    header_scan_rows: int = HEADER_SCAN_ROWS,
) -> IngestResult:
    """Run :func:`ingest` in a worker thread.

    Uploads for different slots can be awaited concurrently; decoding a
    large workbook does not block the event loop.
    """
    return await asyncio.to_thread(
        ingest, data, filename, category, file_format, header_scan_rows
    )
