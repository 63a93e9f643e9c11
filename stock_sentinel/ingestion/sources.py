"""Row access adapters.

Normalizers read fields through a single capability, ``row.get(field)``,
regardless of where the row came from:

- :class:`RecordRow` wraps a header-keyed mapping (delimited text) and
  resolves each field with :func:`fields.pick` on every access.
- :class:`GridRow` wraps a positional row (workbook) and looks fields up
  through a :class:`ColumnIndex` resolved once against the header.

Both resolve through the same :class:`DatasetRules` alias lists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol

from .fields import pick
from .headers import find_column
from .rules import DatasetRules

logger = logging.getLogger("sentinel.ingestion.sources")


class RowAccessor(Protocol):
    """Field-level access to one source row."""

    def get(self, field: str) -> Any:
        """Raw value of a semantic field, or None when unresolved."""
        ...


class RecordRow:
    """Accessor over a header-keyed row."""

    __slots__ = ("_row", "_rules")

    def __init__(self, row: Mapping[str, Any], rules: DatasetRules):
        self._row = row
        self._rules = rules

    def get(self, field: str) -> Any:
        return pick(self._row, self._rules.aliases(field))


class ColumnIndex:
    """Field → column position, resolved once per workbook."""

    def __init__(self, header: Sequence[str], rules: DatasetRules):
        self.header = list(header)
        self.positions: dict[str, int] = {
            name: find_column(self.header, aliases)
            for name, aliases in rules.fields.items()
        }
        logger.debug(
            "%s columns resolved: %s",
            rules.category.value,
            {
                name: (self.header[i] if i >= 0 else None)
                for name, i in self.positions.items()
            },
        )

    def position(self, field: str) -> int:
        return self.positions.get(field, -1)

    @property
    def missing(self) -> list[str]:
        """Fields with no matching column."""
        return [name for name, i in self.positions.items() if i < 0]


class GridRow:
    """Accessor over a positional row from a workbook grid."""

    __slots__ = ("_cells", "_index")

    def __init__(self, cells: Sequence[Any], index: ColumnIndex):
        self._cells = cells
        self._index = index

    def get(self, field: str) -> Any:
        i = self._index.position(field)
        if i < 0 or i >= len(self._cells):
            return None
        value = self._cells[i]
        # Workbook blanks are "" in the grid
        return None if value == "" else value


def iter_records(
    rows: Sequence[Mapping[str, Any]], rules: DatasetRules
) -> Iterator[RowAccessor]:
    """Adapt header-keyed rows."""
    for row in rows:
        yield RecordRow(row, rules)


def iter_grid(
    index: ColumnIndex, rows: Sequence[Sequence[Any]]
) -> Iterator[RowAccessor]:
    """Adapt positional rows below a resolved header; blank rows are skipped."""
    for cells in rows:
        if all(c == "" for c in cells):
            continue
        yield GridRow(cells, index)
