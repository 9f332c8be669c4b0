"""Editor session - one authoritative workbook plus derived view state.

The session holds the Original workbook. Everything else is derived:
- the column type vector, recomputed from the active sheet on switch
- the Working dataset, recomputed from Original and the filter state

Edits and row insertions write to Original only. Because Working is a
projection, it reflects them on the next read and the two can never
drift apart.
"""
from __future__ import annotations

import json
import logging
import uuid
from collections import OrderedDict
from typing import Any, List, Optional

from .errors import CellIndexError, SheetNotFoundError
from .export import (
    export_sheet_matrix,
    export_sheet_records,
    export_workbook_matrices,
    export_workbook_records,
    export_workbook_tables,
    sheet_to_table,
)
from .filters import clear_filters, copy_sheets, filter_workbook, filtered_row_indices
from .pdf_renderer import PDF_MEDIA_TYPE, render_tables_pdf
from .schemas import (
    ColumnType,
    ExportArtifact,
    ExportFormat,
    ExportScope,
    ExportSource,
    FilterMode,
    FilterState,
    Sheet,
    Workbook,
)
from .type_inference import infer_column_types
from .validation import validate_cell_edit
from .writer import XLSX_MEDIA_TYPE, matrices_to_xlsx


logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


class EditorSession:
    """Editing state for one uploaded workbook."""

    def __init__(
        self,
        workbook: Optional[Workbook] = None,
        original_bytes: Optional[bytes] = None,
        session_id: Optional[str] = None,
        landscape_pdf: bool = True,
    ):
        self.id = session_id or uuid.uuid4().hex[:12]
        self.original = Workbook()
        self.original_bytes = original_bytes
        self.active_sheet_index = 0
        self.column_types: List[ColumnType] = []
        self.filter_state = FilterState()
        self.landscape_pdf = landscape_pdf
        if workbook is not None:
            self.load(workbook, original_bytes)

    # -------------------------------------------------------------------------
    # Loading / sheet selection
    # -------------------------------------------------------------------------

    def load(self, workbook: Workbook, original_bytes: Optional[bytes] = None) -> None:
        self.original = workbook.model_copy(deep=True)
        if original_bytes is not None:
            self.original_bytes = original_bytes
        self.active_sheet_index = 0
        self._reset_view_state()

    def _reset_view_state(self) -> None:
        sheet = self.active_sheet
        self.filter_state = FilterState.empty(sheet.width if sheet else 0)
        self.column_types = infer_column_types(sheet.rows) if sheet else []

    @property
    def active_sheet(self) -> Optional[Sheet]:
        """Active sheet of the Original workbook, or None when there are no sheets."""
        return self.original.get_sheet_by_index(self.active_sheet_index)

    def select_sheet(self, index: int) -> Sheet:
        sheet = self.original.get_sheet_by_index(index)
        if sheet is None:
            raise SheetNotFoundError(f"Sheet not found: {index}")
        self.active_sheet_index = index
        self._reset_view_state()
        logger.info(f"Session {self.id}: switched to sheet '{sheet.name}' ({self.column_types})")
        return sheet

    # -------------------------------------------------------------------------
    # Mutations (Original only)
    # -------------------------------------------------------------------------

    def edit_cell(self, row_index: int, column_index: int, value: Any) -> None:
        """Validate and write a cell of the active sheet.

        Indices address the Original matrix. Under an active filter, use
        working_row_indices to map a displayed row to its Original index.
        Header cells are labels and accept any text. An invalid value raises
        InvalidCellEditError and leaves the workbook untouched.
        """
        sheet = self.active_sheet
        if sheet is None:
            raise SheetNotFoundError("No sheet loaded")
        if not (0 <= row_index < len(sheet.rows)) or not (0 <= column_index < sheet.width):
            raise CellIndexError(f"Cell ({row_index}, {column_index}) is outside the sheet")

        if row_index > 0 and column_index < len(self.column_types):
            validate_cell_edit(value, self.column_types[column_index])
        sheet.rows[row_index][column_index] = value

    def add_row(self) -> int:
        """Append an empty row to the active sheet and return its index."""
        sheet = self.active_sheet
        if sheet is None:
            raise SheetNotFoundError("No sheet loaded")
        return sheet.append_row()

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def apply_filters(
        self,
        filters: List[str],
        global_search: str = "",
        mode: FilterMode = FilterMode.PER_COLUMN,
    ) -> List[Sheet]:
        width = self.active_sheet.width if self.active_sheet else 0
        padded = (list(filters) + [""] * width)[:max(width, len(filters))]
        state = FilterState(filters=padded, global_search=global_search, mode=mode)
        state.active = not state.is_empty
        self.filter_state = state
        working = self.working
        logger.info(
            f"Session {self.id}: {mode.value} filters {padded!r} search={global_search!r} -> "
            f"{sum(max(len(s.rows) - 1, 0) for s in working)} rows"
        )
        return working

    def clear_filters(self) -> List[Sheet]:
        sheet = self.active_sheet
        self.filter_state, working = clear_filters(self.original.sheets, sheet.width if sheet else 0)
        return working

    @property
    def working(self) -> List[Sheet]:
        """Displayed sheets: the filtered projection, or a copy of Original."""
        if self.filter_state.active:
            filtered = filter_workbook(self.original.sheets, self.filter_state)
            if filtered is not None:
                return filtered
        return copy_sheets(self.original.sheets)

    @property
    def working_active_sheet(self) -> Optional[Sheet]:
        working = self.working
        if 0 <= self.active_sheet_index < len(working):
            return working[self.active_sheet_index]
        return None

    @property
    def working_row_indices(self) -> List[int]:
        """Original row index of each row in the working active sheet."""
        sheet = self.active_sheet
        if sheet is None:
            return []
        if not self.filter_state.active:
            return list(range(len(sheet.rows)))
        return filtered_row_indices(sheet, self.filter_state)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(
        self,
        fmt: ExportFormat,
        scope: ExportScope = ExportScope.ALL,
        source: ExportSource = ExportSource.FILTERED,
    ) -> ExportArtifact:
        sheets = self.working if source == ExportSource.FILTERED else copy_sheets(self.original.sheets)
        if scope == ExportScope.CURRENT:
            current = sheets[self.active_sheet_index] if 0 <= self.active_sheet_index < len(sheets) else None
            sheets = [current] if current is not None else []

        stem = self._export_stem(sheets, scope, source)

        if fmt == ExportFormat.XLSX:
            if scope == ExportScope.CURRENT and sheets:
                matrices = export_sheet_matrix(sheets[0])
            else:
                matrices = export_workbook_matrices(sheets)
            artifact = ExportArtifact(
                filename=f"{stem}.xlsx", media_type=XLSX_MEDIA_TYPE, content=matrices_to_xlsx(matrices)
            )
        elif fmt == ExportFormat.JSON:
            if scope == ExportScope.CURRENT and sheets:
                payload: Any = export_sheet_records(sheets[0]).model_dump(by_alias=True)
            else:
                payload = [r.model_dump(by_alias=True) for r in export_workbook_records(sheets)]
            text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
            artifact = ExportArtifact(
                filename=f"{stem}.json", media_type=JSON_MEDIA_TYPE, content=text.encode("utf-8")
            )
        else:
            tables = export_workbook_tables(sheets) if scope == ExportScope.ALL else [sheet_to_table(s) for s in sheets]
            artifact = ExportArtifact(
                filename=f"{stem}.pdf",
                media_type=PDF_MEDIA_TYPE,
                content=render_tables_pdf(tables, landscape_page=self.landscape_pdf),
            )

        logger.info(f"Session {self.id}: exported {artifact.filename} ({len(artifact.content):,} bytes)")
        return artifact

    @staticmethod
    def _export_stem(sheets: List[Sheet], scope: ExportScope, source: ExportSource) -> str:
        if scope == ExportScope.CURRENT and sheets:
            suffix = "_filtered" if source == ExportSource.FILTERED else ""
            return f"{sheets[0].name}{suffix}"
        return "filtered_data" if source == ExportSource.FILTERED else "exported_data"

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(self) -> dict:
        """UI-friendly view of the session."""
        working_sheet = self.working_active_sheet
        return {
            "id": self.id,
            "filename": self.original.filename,
            "sheets": [
                {"index": i, "name": s.name, "row_count": max(len(s.rows) - 1, 0), "column_count": s.width}
                for i, s in enumerate(self.original.sheets)
            ],
            "active_sheet_index": self.active_sheet_index,
            "column_types": [t.value for t in self.column_types],
            "filters": self.filter_state.model_dump(mode="json"),
            "rows": working_sheet.rows if working_sheet else [],
            "row_indices": self.working_row_indices,
        }


class SessionStore:
    """In-memory registry of editor sessions, oldest evicted first."""

    def __init__(self, max_sessions: int = 50):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, EditorSession]" = OrderedDict()

    def add(self, session: EditorSession) -> EditorSession:
        self._sessions[session.id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted session {evicted_id}")
        return session

    def get(self, session_id: str) -> Optional[EditorSession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
