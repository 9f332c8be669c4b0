"""Exceptions raised by the sheet engine."""
from __future__ import annotations

from typing import Any


class SheetEngineError(Exception):
    """Base class for sheet engine failures."""


class InvalidCellEditError(SheetEngineError):
    """A proposed cell value does not match the column's inferred type."""

    def __init__(self, value: Any, column_type: str):
        self.value = value
        self.column_type = str(getattr(column_type, "value", column_type))
        super().__init__(f"Invalid input! Expected a value of type {self.column_type}.")


class RowShapeError(SheetEngineError):
    """A row is wider than the header of its sheet."""

    def __init__(self, row_length: int, header_length: int):
        self.row_length = row_length
        self.header_length = header_length
        super().__init__(
            f"Row has {row_length} cells but the header has {header_length}"
        )


class SheetNotFoundError(SheetEngineError):
    pass


class CellIndexError(SheetEngineError):
    pass


class WorkbookDecodeError(SheetEngineError):
    """Uploaded bytes could not be turned into a workbook."""
