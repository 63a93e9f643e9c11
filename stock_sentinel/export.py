"""Delimited-text export of result sets.

One header line of field names (quoted only where needed), then one line
per row with every value quoted. Infinite figures (days of inventory
for items that never sold) and missing values are written as empty
strings.
"""

from __future__ import annotations

import csv
import io
import math
from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _as_dict(row: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(row, BaseModel):
        return row.model_dump()
    return dict(row)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and not math.isfinite(value):
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def serialize_to_delimited_text(
    rows: Sequence[BaseModel | Mapping[str, Any]],
) -> bytes:
    """Serialize a result set to CSV bytes.

    Field names come from the first row. Returns ``b""`` for no rows.
    """
    if not rows:
        return b""

    records = [_as_dict(r) for r in rows]
    headers = list(records[0].keys())

    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(headers)
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        writer.writerow([_cell(record.get(h)) for h in headers])

    return buf.getvalue().rstrip("\n").encode("utf-8")
