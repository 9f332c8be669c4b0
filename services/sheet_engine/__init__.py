"""Sheet Engine - the data/transform core of the sheet editor.

This module handles:
1. Inferring a semantic type per column and validating cell edits against it
2. Filtering the unfiltered baseline (per-column, any-column and global search)
3. Shaping sheets for XLSX, JSON and PDF export
4. Decoding uploads into row matrices and encoding exports
"""

from .schemas import (
    # Core
    Sheet,
    Workbook,
    ColumnType,
    FilterMode,
    FilterState,
    # Export
    ExportArtifact,
    ExportFormat,
    ExportScope,
    ExportSource,
    PdfTable,
    SheetRecords,
)
from .errors import (
    SheetEngineError,
    InvalidCellEditError,
    RowShapeError,
    SheetNotFoundError,
    CellIndexError,
    WorkbookDecodeError,
)
from .type_inference import infer_column_types
from .validation import is_valid_date, is_valid_value, validate_cell_edit
from .filters import apply_filters, apply_global_filters, clear_filters, filtered_row_indices
from .export import (
    sheet_to_matrix,
    sheet_to_records,
    sheet_to_table,
    export_workbook_matrices,
    export_workbook_records,
    export_workbook_tables,
)
from .parser import decode_workbook
from .writer import matrices_to_xlsx
from .session import EditorSession, SessionStore

__all__ = [
    # Core schemas
    "Sheet",
    "Workbook",
    "ColumnType",
    "FilterMode",
    "FilterState",
    # Export schemas
    "ExportArtifact",
    "ExportFormat",
    "ExportScope",
    "ExportSource",
    "PdfTable",
    "SheetRecords",
    # Errors
    "SheetEngineError",
    "InvalidCellEditError",
    "RowShapeError",
    "SheetNotFoundError",
    "CellIndexError",
    "WorkbookDecodeError",
    # Functions
    "infer_column_types",
    "is_valid_date",
    "is_valid_value",
    "validate_cell_edit",
    "apply_filters",
    "apply_global_filters",
    "clear_filters",
    "filtered_row_indices",
    "sheet_to_matrix",
    "sheet_to_records",
    "sheet_to_table",
    "export_workbook_matrices",
    "export_workbook_records",
    "export_workbook_tables",
    "decode_workbook",
    "matrices_to_xlsx",
    # Session
    "EditorSession",
    "SessionStore",
]
