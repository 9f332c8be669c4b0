"""Export shaping - turns sheets into the structures each encoder consumes.

Shapes:
1. Matrix: header + body rows, unchanged order (XLSX writer)
2. Records: one header-keyed dict per data row (JSON)
3. Table: head/body pair per sheet (PDF renderer)

Record keys follow a last-write-wins policy: when two headers share a
label, the later column overwrites the earlier one. Callers that need
every column should make their headers unique first.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Sequence, Tuple

from .schemas import PdfTable, RowMatrix, Sheet, SheetRecords


logger = logging.getLogger(__name__)


# =============================================================================
# SINGLE SHEET
# =============================================================================

def sheet_to_matrix(sheet: Sheet) -> RowMatrix:
    """Copy of the sheet's rows, header first."""
    return [list(row) for row in sheet.rows]


def sheet_to_records(sheet: Sheet) -> List[Dict[str, Any]]:
    """Header-keyed records for every data row."""
    if not sheet.rows:
        return []

    header = sheet.rows[0]
    duplicates = [label for label, count in Counter(header).items() if count > 1]
    if duplicates:
        logger.warning(
            f"Sheet '{sheet.name}' has duplicate headers {duplicates}; later columns win"
        )

    records: List[Dict[str, Any]] = []
    for row in sheet.rows[1:]:
        record: Dict[str, Any] = {}
        for index, label in enumerate(header):
            record[str(label) if label is not None else ""] = row[index] if index < len(row) else None
        records.append(record)
    return records


def sheet_to_table(sheet: Sheet) -> PdfTable:
    if not sheet.rows:
        return PdfTable(sheet_name=sheet.name)
    return PdfTable(
        sheet_name=sheet.name,
        head=[list(sheet.rows[0])],
        body=[list(row) for row in sheet.rows[1:]],
    )


# =============================================================================
# CURRENT SHEET / ALL SHEETS
# =============================================================================

def export_sheet_matrix(sheet: Sheet) -> List[Tuple[str, RowMatrix]]:
    return [(sheet.name, sheet_to_matrix(sheet))]


def export_workbook_matrices(sheets: Sequence[Sheet]) -> List[Tuple[str, RowMatrix]]:
    """One (name, matrix) pair per sheet, in workbook order."""
    return [(sheet.name, sheet_to_matrix(sheet)) for sheet in sheets]


def export_sheet_records(sheet: Sheet) -> SheetRecords:
    return SheetRecords(sheet_name=sheet.name, data=sheet_to_records(sheet))


def export_workbook_records(sheets: Sequence[Sheet]) -> List[SheetRecords]:
    return [export_sheet_records(sheet) for sheet in sheets]


def export_workbook_tables(sheets: Sequence[Sheet]) -> List[PdfTable]:
    return [sheet_to_table(sheet) for sheet in sheets]
