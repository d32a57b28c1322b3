"""Exceptions raised by the export pipeline and the record decoders."""

from __future__ import annotations


class SheetConfigError(Exception):
    """Base class for every error raised by sheetconfig."""


class HeaderFormatError(SheetConfigError):
    """A sheet's header rows cannot describe a record type."""

    def __init__(self, source: str, sheet: str, message: str) -> None:
        self.source = source
        self.sheet = sheet
        super().__init__(f"{source} - {sheet}: {message}")


class RecordDecodeError(SheetConfigError):
    """A JSON object could not be turned into a record instance."""
