"""Pydantic schemas for the in-memory sheet model.

A workbook is an ordered list of named row matrices. Row 0 of every
matrix is the header; the remaining rows are data. Every row is kept at
the header's width:
- Short rows are padded with empty cells (None)
- Rows wider than the header are rejected
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .errors import RowShapeError


CellValue = Union[str, int, float, bool, datetime, date, None]
Row = List[CellValue]
RowMatrix = List[Row]


class ColumnType(str, Enum):
    """Semantic column types produced by inference."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class FilterMode(str, Enum):
    """How per-column filter strings are matched against a row."""
    PER_COLUMN = "per_column"  # Each column must contain its own filter
    ANY_COLUMN = "any_column"  # Every cell must contain one of the filters


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    JSON = "json"
    PDF = "pdf"


class ExportScope(str, Enum):
    CURRENT = "current"
    ALL = "all"


class ExportSource(str, Enum):
    FILTERED = "filtered"
    ORIGINAL = "original"


def _pad_row(row: Row, width: int) -> Row:
    if len(row) > width:
        raise RowShapeError(len(row), width)
    return list(row) + [None] * (width - len(row))


class Sheet(BaseModel):
    """A named row matrix.

    The header row fixes the width of the sheet. Rows are normalised on
    construction and on every append so positional access never runs off
    the end of a row.
    """
    name: str
    rows: List[List[Any]] = []

    @field_validator("rows")
    @classmethod
    def _normalise_rows(cls, rows: List[List[Any]]) -> List[List[Any]]:
        if not rows:
            return []
        width = len(rows[0])
        return [list(rows[0])] + [_pad_row(row, width) for row in rows[1:]]

    @property
    def header(self) -> Row:
        return self.rows[0] if self.rows else []

    @property
    def width(self) -> int:
        return len(self.header)

    @property
    def data_rows(self) -> RowMatrix:
        return self.rows[1:]

    def append_row(self, row: Optional[Row] = None) -> int:
        """Append a row (empty by default) and return its matrix index."""
        if not self.rows:
            raise RowShapeError(len(row or []), 0)
        self.rows.append(_pad_row(row or [], self.width))
        return len(self.rows) - 1


class Workbook(BaseModel):
    """Ordered collection of sheets, in source order."""
    filename: Optional[str] = None
    sheets: List[Sheet] = []

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    def get_sheet(self, name: str) -> Optional[Sheet]:
        """Get a sheet by name (first match wins)."""
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None

    def get_sheet_by_index(self, index: int) -> Optional[Sheet]:
        """Get a sheet by index."""
        if 0 <= index < len(self.sheets):
            return self.sheets[index]
        return None


class FilterState(BaseModel):
    """Per-column filter strings plus one global search term."""
    filters: List[str] = []
    global_search: str = ""
    mode: FilterMode = FilterMode.PER_COLUMN
    active: bool = False

    @classmethod
    def empty(cls, width: int) -> "FilterState":
        return cls(filters=[""] * width)

    @property
    def is_empty(self) -> bool:
        return all(f == "" for f in self.filters) and self.global_search.strip() == ""


class PdfTable(BaseModel):
    """Head/body pair consumed by the PDF table renderer."""
    sheet_name: str
    head: List[List[Any]] = []
    body: RowMatrix = []


class SheetRecords(BaseModel):
    """Header-keyed records of one sheet, as written to JSON."""
    sheet_name: str = Field(serialization_alias="sheetName")
    data: List[Dict[str, Any]] = []


class ExportArtifact(BaseModel):
    """Encoded export ready for download."""
    filename: str
    media_type: str
    content: bytes
