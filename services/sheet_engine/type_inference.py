"""Column type inference.

Each column gets exactly one type for the lifetime of the active sheet.
The first decisive cell, scanning top to bottom, wins:
- a native number makes the column ``number``
- a date under the canonical rule makes it ``date``
- no decisive cell leaves it ``string``

There is no majority vote; downstream edit validation relies on a single
deterministic answer per column.
"""
from __future__ import annotations

from typing import Any, List, Sequence

from .schemas import ColumnType
from .validation import is_valid_date


def _is_native_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_column_type(rows: Sequence[Sequence[Any]], col_index: int) -> ColumnType:
    """Infer the type of one column, skipping the header row."""
    for row in rows[1:]:
        cell = row[col_index] if col_index < len(row) else None
        if _is_native_number(cell):
            return ColumnType.NUMBER
        if is_valid_date(cell):
            return ColumnType.DATE
    return ColumnType.STRING


def infer_column_types(rows: Sequence[Sequence[Any]]) -> List[ColumnType]:
    """Infer a type vector for a full matrix (header at row 0).

    Returns an empty vector when there is no header or no data row.
    """
    if len(rows) < 2:
        return []
    return [infer_column_type(rows, i) for i in range(len(rows[0]))]
