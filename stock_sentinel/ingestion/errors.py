"""Ingestion failures.

Both errors are local to a single ingestion call: the dataset store is
only written after a file has been fully decoded and normalized, so a
raised error leaves previously loaded datasets untouched.
"""

from __future__ import annotations


class IngestError(Exception):
    """Raised when an uploaded file cannot be ingested."""

    def __init__(self, message: str, category: str = "", filename: str = ""):
        self.category = category
        self.filename = filename
        super().__init__(message)


class FormatError(IngestError):
    """File extension is not accepted by the target upload slot."""


class ParseError(IngestError):
    """The file could not be decoded as delimited text or a workbook."""
