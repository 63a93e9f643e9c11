"""Field picking and value coercion for loosely structured exports.

Export columns drift between report versions ("Qty", "Quantity Sold",
"QTY ") so fields are located by alias rather than by exact name:

1. exact match: the first alias (in caller order) equal to a row key
   after both are lower-cased and trimmed;
2. containment: the first row key (in row order) that contains any
   alias as a substring.

A miss returns ``None``. Callers coerce misses to a default with the
helpers below; nothing in this module raises on bad data.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import pandas as pd


def _norm(label: Any) -> str:
    return str(label).lower().strip()


def lower_keys(row: Mapping[Any, Any]) -> dict[str, Any]:
    """Return a copy of ``row`` with lower-cased, trimmed keys."""
    return {_norm(k): v for k, v in (row or {}).items()}


def pick(row: Mapping[Any, Any], aliases: Iterable[str]) -> Any:
    """Resolve a semantic field from a row by alias.

    Args:
        row: Mapping of column label to raw value, in source column order.
        aliases: Acceptable column names, most specific first.

    Returns:
        The raw value, or None when no column matches.
    """
    lowered = lower_keys(row)
    wanted = [_norm(a) for a in aliases]

    for alias in wanted:
        if alias in lowered:
            return lowered[alias]

    for key, value in lowered.items():
        if any(alias in key for alias in wanted):
            return value

    return None


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _is_nan(val: Any) -> bool:
    return isinstance(val, float) and math.isnan(val)


def is_present(val: Any) -> bool:
    """True when a cell holds a value (not None, NaN, or blank text)."""
    if val is None or _is_nan(val):
        return False
    if isinstance(val, str) and not val.strip():
        return False
    return True


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert a cell to float; anything unparsable is ``default``."""
    if val is None or _is_nan(val) or isinstance(val, bool):
        return default
    if isinstance(val, int | float):
        return float(val) if math.isfinite(val) else default
    s = str(val).strip().strip('"').strip("'")
    if not s or s == "-":
        return default
    # Remove dollar signs, commas, percent, parentheses (negative)
    s = s.replace("$", "").replace(",", "").replace("%", "").strip()
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    try:
        result = float(s)
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def to_text(val: Any) -> str:
    """Render a cell as text, the way it looked in the spreadsheet.

    Column-wise type inference turns ``12345`` into ``12345.0`` whenever
    the column also has a blank, so integral floats drop their fraction.
    """
    if val is None or _is_nan(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if isinstance(val, pd.Timestamp):
        return val.isoformat()
    return str(val)


_DATE_FORMATS = [
    "%Y-%m-%d",  # 2025-03-15
    "%m/%d/%Y",  # 03/15/2025
    "%m/%d/%y",  # 03/15/25
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",  # 2025/03/15
    "%d-%b-%Y",  # 15-Mar-2025
    "%b %d, %Y",  # Mar 15, 2025
]


def parse_date(val: Any) -> date | None:
    """Try to parse a date from the formats ERP exports commonly use."""
    if val is None or _is_nan(val):
        return None
    # Timestamp before datetime before date (subclass order)
    if isinstance(val, pd.Timestamp):
        return None if pd.isna(val) else val.date()
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    if not s or s.lower() in ("nan", "nat", "none", "-"):
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None
