"""API routes for the sheet editor.

- Upload XLSX/CSV -> decode to row matrices
- Select sheet, edit cells, add rows
- Apply / clear filters
- Export to XLSX, JSON or PDF
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from services.config import get_editor_settings
from services.sheet_engine import (
    CellIndexError,
    EditorSession,
    ExportFormat,
    ExportScope,
    ExportSource,
    FilterMode,
    InvalidCellEditError,
    SessionStore,
    SheetNotFoundError,
    WorkbookDecodeError,
    decode_workbook,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spreadsheets", tags=["spreadsheets"])

# In-memory storage for active editing sessions
_sessions = SessionStore(max_sessions=get_editor_settings().max_sessions)


# =============================================================================
# MODELS
# =============================================================================

class SheetSelectRequest(BaseModel):
    """Request to switch the active sheet."""
    index: int


class CellEditRequest(BaseModel):
    """Request to edit a cell value of the active sheet."""
    row: int  # Original row index (see summary "row_indices"); 0 = header
    col: int
    value: Optional[str | int | float | bool] = None


class FilterRequest(BaseModel):
    """Per-column filters plus a global search term."""
    filters: List[str] = []
    global_search: str = ""
    mode: FilterMode = FilterMode.PER_COLUMN


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/", response_model=dict)
async def upload_spreadsheet(file: UploadFile = File(...)):
    """Upload an XLSX/CSV file and open an editing session."""
    settings = get_editor_settings()

    if not file.filename:
        raise HTTPException(400, "No filename provided")

    suffix = Path(file.filename).suffix.lower()
    if suffix not in settings.allowed_extensions:
        raise HTTPException(400, f"Only {', '.join(settings.allowed_extensions)} files are supported")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(413, f"File exceeds {settings.max_upload_mb} MB")

    try:
        workbook = decode_workbook(content, file.filename)
    except WorkbookDecodeError as e:
        raise HTTPException(400, f"Failed to parse spreadsheet: {e}")

    session = _sessions.add(EditorSession(
        workbook,
        original_bytes=content,
        landscape_pdf=settings.pdf_page == "landscape-a4",
    ))
    logger.info(f"Opened session {session.id} for {file.filename}")
    return session.summary()


@router.get("/{session_id}")
async def get_spreadsheet(session_id: str):
    """Get the current state of a session."""
    return _get_session(session_id).summary()


@router.delete("/{session_id}")
async def close_spreadsheet(session_id: str):
    if not _sessions.remove(session_id):
        raise HTTPException(404, "Spreadsheet not found")
    return {"status": "closed", "id": session_id}


@router.post("/{session_id}/sheet")
async def select_sheet(session_id: str, payload: SheetSelectRequest):
    """Switch the active sheet. Resets filters and re-infers column types."""
    session = _get_session(session_id)
    try:
        session.select_sheet(payload.index)
    except SheetNotFoundError as e:
        raise HTTPException(404, str(e))
    return session.summary()


@router.post("/{session_id}/cell")
async def edit_cell(session_id: str, edit: CellEditRequest):
    """Edit a single cell of the active sheet.

    The value must match the column's inferred type; otherwise the edit is
    rejected with a 400 and nothing changes.
    """
    session = _get_session(session_id)
    try:
        session.edit_cell(edit.row, edit.col, edit.value)
    except InvalidCellEditError as e:
        raise HTTPException(400, {"message": str(e), "expected_type": e.column_type})
    except (SheetNotFoundError, CellIndexError) as e:
        raise HTTPException(404, str(e))
    return session.summary()


@router.post("/{session_id}/rows")
async def add_row(session_id: str):
    """Append an empty row to the active sheet."""
    session = _get_session(session_id)
    try:
        row_index = session.add_row()
    except SheetNotFoundError as e:
        raise HTTPException(404, str(e))
    result = session.summary()
    result["added_row_index"] = row_index
    return result


@router.post("/{session_id}/filters")
async def apply_filters(session_id: str, payload: FilterRequest):
    """Filter every sheet from the unfiltered baseline."""
    session = _get_session(session_id)
    session.apply_filters(payload.filters, payload.global_search, payload.mode)
    return session.summary()


@router.delete("/{session_id}/filters")
async def clear_filters(session_id: str):
    session = _get_session(session_id)
    session.clear_filters()
    return session.summary()


@router.get("/{session_id}/export")
async def export_spreadsheet(
    session_id: str,
    format: ExportFormat = Query(ExportFormat.XLSX),
    scope: ExportScope = Query(ExportScope.ALL),
    source: ExportSource = Query(ExportSource.FILTERED),
):
    """Export the filtered view or the original data."""
    session = _get_session(session_id)
    artifact = session.export(format, scope, source)
    return _download(artifact.content, artifact.filename, artifact.media_type)


@router.get("/{session_id}/original")
async def download_original(session_id: str):
    """Download the file exactly as it was uploaded."""
    session = _get_session(session_id)
    if session.original_bytes is None:
        raise HTTPException(404, "Original file not available")
    filename = session.original.filename or "original_data.xlsx"
    return _download(session.original_bytes, f"original_{Path(filename).name}", "application/octet-stream")


# =============================================================================
# HELPERS
# =============================================================================

def _get_session(session_id: str) -> EditorSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Spreadsheet not found")
    return session


def _download(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


def _reset_sessions(max_sessions: Optional[int] = None) -> SessionStore:
    """Replace the session store (used by tests)."""
    global _sessions
    _sessions = SessionStore(max_sessions=max_sessions or get_editor_settings().max_sessions)
    return _sessions
