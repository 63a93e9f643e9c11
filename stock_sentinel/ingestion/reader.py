"""Tabular reader: raw upload bytes → rows.

Delimited text is parsed with its first line as the header and each row
returned as a mapping of column label to value (numbers inferred per
column, blank lines skipped). Workbooks are decoded to a plain grid of
cell values from the first sheet; header discovery happens later in
:mod:`.headers` because ERP workbooks carry a title block above it.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from typing import Any

import pandas as pd

from .errors import FormatError, ParseError
from .models import FileFormat

logger = logging.getLogger("sentinel.ingestion.reader")

# Extension → physical format
EXTENSION_FORMATS: dict[str, FileFormat] = {
    ".csv": FileFormat.DELIMITED,
    ".xls": FileFormat.WORKBOOK,
    ".xlsx": FileFormat.WORKBOOK,
}

RawRow = dict[str, Any]


def ensure_extension(filename: str, allowed: Sequence[str], category: str = "") -> str:
    """Check the filename against the slot's accepted extensions.

    Returns:
        The matched extension (lower case).

    Raises:
        FormatError: If no accepted extension matches.
    """
    name = filename.lower()
    for ext in allowed:
        if name.endswith(ext):
            return ext
    raise FormatError(
        f'Expected {", ".join(allowed)} but got "{filename}"',
        category=category,
        filename=filename,
    )


def format_for(filename: str) -> FileFormat | None:
    """Physical format implied by a filename's extension."""
    name = filename.lower()
    for ext, fmt in EXTENSION_FORMATS.items():
        if name.endswith(ext):
            return fmt
    return None


def _none_for_nan(df: pd.DataFrame) -> pd.DataFrame:
    return df.astype(object).where(pd.notna(df), None)


def read_delimited(data: bytes, filename: str = "", category: str = "") -> list[RawRow]:
    """Parse delimited text into header-keyed rows.

    Raises:
        ParseError: If the bytes cannot be parsed as CSV.
    """
    # Only blank cells are missing; "NA" or "None" are real labels
    read_kwargs: dict = {
        "skip_blank_lines": True,
        "keep_default_na": False,
        "na_values": [""],
    }
    try:
        try:
            df = pd.read_csv(io.BytesIO(data), **read_kwargs)
        except UnicodeDecodeError:
            df = pd.read_csv(io.BytesIO(data), encoding="latin1", **read_kwargs)
    except pd.errors.EmptyDataError:
        logger.warning("Delimited file %s is empty", filename or "<bytes>")
        return []
    except (pd.errors.ParserError, ValueError, UnicodeDecodeError) as e:
        raise ParseError(
            f"Could not parse {filename or 'file'} as CSV: {e}",
            category=category,
            filename=filename,
        ) from e

    # Rows whose every cell is blank (e.g. ",,,") survive skip_blank_lines
    df = df.dropna(how="all")
    rows = _none_for_nan(df).to_dict(orient="records")
    logger.debug(
        "Parsed %d rows x %d columns from %s", len(rows), len(df.columns), filename
    )
    return rows


def read_workbook_grid(
    data: bytes, filename: str = "", category: str = ""
) -> list[list[Any]]:
    """Decode the first sheet of a workbook into a grid of raw cells.

    Blank cells become ``""``. No header row is assumed.

    Raises:
        ParseError: If the container cannot be read.
    """
    try:
        df = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None)
    except Exception as e:
        # xlrd, openpyxl and zipfile all raise their own exception types
        raise ParseError(
            f"Could not read {filename or 'file'} as a workbook: {e}",
            category=category,
            filename=filename,
        ) from e

    grid = df.astype(object).where(pd.notna(df), "").values.tolist()
    logger.debug("Decoded %d sheet rows from %s", len(grid), filename)
    return grid
