"""Header discovery for workbook exports.

ERP workbook exports put a title block (company name, report name, date
range) above the real column headers, and its height varies by report.
The header row is found by majority vote: the first row, within the scan
window, whose cells contain at least half of the expected header tokens.

When nothing qualifies, row 0 is used. This is a best-effort fallback,
not an error: a mis-detected header simply yields fewer matched fields
and therefore fewer accepted rows downstream.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from .fields import to_text

logger = logging.getLogger("sentinel.ingestion.headers")

# Rows inspected when looking for the header
HEADER_SCAN_ROWS = 30

# Fraction of expected tokens a row must contain to qualify
HEADER_MATCH_RATIO = 0.5


def find_header_row(
    grid: Sequence[Sequence[Any]],
    expected: Sequence[str],
    scan_limit: int = HEADER_SCAN_ROWS,
) -> int:
    """Locate the header row within the first ``scan_limit`` rows.

    Args:
        grid: Raw sheet rows, top to bottom.
        expected: Lower-case header tokens typical for the report.
        scan_limit: Maximum number of rows to inspect.

    Returns:
        Index of the first qualifying row, or 0 if none qualifies.
    """
    wanted = [str(h).lower() for h in expected]
    needed = math.ceil(len(wanted) * HEADER_MATCH_RATIO)

    for i in range(min(len(grid), scan_limit)):
        cells = {to_text(c).lower() for c in (grid[i] or [])}
        hits = sum(1 for h in wanted if h in cells)
        if hits >= needed:
            logger.debug("Header row %d matched %d/%d tokens", i, hits, len(wanted))
            return i

    logger.debug(
        "No header row matched %d of %s in first %d rows; using row 0",
        needed,
        wanted,
        scan_limit,
    )
    return 0


def find_column(header: Sequence[str], aliases: Sequence[str]) -> int:
    """Find the column index for a semantic field.

    Same two-phase rule as :func:`fields.pick`: exact (alias order) then
    containment (column order), both case-insensitive.

    Returns:
        Column index, or -1 when no column matches.
    """
    lowered = [str(h).lower() for h in header]
    wanted = [a.lower() for a in aliases]

    for alias in wanted:
        if alias in lowered:
            return lowered.index(alias)

    for i, col in enumerate(lowered):
        if any(alias in col for alias in wanted):
            return i

    return -1


def slice_from_header(
    grid: Sequence[Sequence[Any]],
    header_index: int,
) -> tuple[list[str], list[list[Any]]]:
    """Split a grid into its header labels and the data rows below it."""
    if header_index >= len(grid):
        return [], []
    header = [to_text(h).strip() for h in grid[header_index]]
    rows = [list(r) for r in grid[header_index + 1 :]]
    return header, rows
