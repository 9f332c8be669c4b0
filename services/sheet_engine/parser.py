"""Workbook decoder - turns uploaded XLSX or CSV bytes into row matrices.

XLSX handling reads the OOXML package directly:
- Sheet order and names from workbook.xml
- Sheet paths from workbook.xml.rels
- Shared strings, inline strings, booleans and numbers

Every sheet follows the header-as-first-row convention: the first row in
the file becomes row 0 and later rows are padded to its width.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

from .errors import WorkbookDecodeError
from .schemas import Sheet, Workbook


logger = logging.getLogger(__name__)


# =============================================================================
# NAMESPACES
# =============================================================================

NS = {
    "main": "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
}


# =============================================================================
# UTILITIES
# =============================================================================

def col_letter_to_index(col: str) -> int:
    """Convert column letter(s) to 1-indexed number. A=1, B=2, ..., Z=26, AA=27."""
    result = 0
    for char in col.upper():
        result = result * 26 + (ord(char) - ord('A') + 1)
    return result


def col_index_to_letter(index: int) -> str:
    """Convert 1-indexed column number to letter(s). 1=A, 2=B, ..., 27=AA."""
    result = ""
    while index > 0:
        index -= 1
        result = chr(ord('A') + (index % 26)) + result
        index //= 26
    return result


def parse_cell_ref(ref: str) -> Tuple[str, int, int]:
    """Parse cell reference like 'A1' or 'AA100' into (col_letter, col_num, row_num)."""
    match = re.match(r'^([A-Z]+)(\d+)$', ref.upper())
    if not match:
        raise ValueError(f"Invalid cell reference: {ref}")
    col_letter = match.group(1)
    row = int(match.group(2))
    col = col_letter_to_index(col_letter)
    return col_letter, col, row


def _coerce_number(text: str) -> Any:
    """Parse numeric text to int when integral, float otherwise."""
    try:
        if "." in text or "E" in text.upper():
            value = float(text)
            if value.is_integer() and "E" not in text.upper() and abs(value) < 2 ** 53:
                return int(value)
            return value
        return int(text)
    except ValueError:
        return text


def _normalise(rows: List[List[Any]]) -> List[List[Any]]:
    """Drop trailing empty rows and pad everything to the header width."""
    while rows and all(cell is None or cell == "" for cell in rows[-1]):
        rows.pop()
    if not rows:
        return []
    width = max(len(row) for row in rows)
    return [row + [None] * (width - len(row)) for row in rows]


# =============================================================================
# SHARED STRINGS
# =============================================================================

def _parse_shared_strings(zf: zipfile.ZipFile) -> List[str]:
    """Parse shared strings table."""
    shared_strings: List[str] = []

    try:
        with zf.open("xl/sharedStrings.xml") as f:
            root = ET.parse(f).getroot()
    except KeyError:
        return shared_strings  # No shared strings

    ns = NS["main"]
    for si in root.findall(f"{{{ns}}}si"):
        t_el = si.find(f"{{{ns}}}t")
        if t_el is not None:
            shared_strings.append(t_el.text or "")
        else:
            # Rich text (multiple <r> elements)
            shared_strings.append("".join(
                t.text or "" for t in si.findall(f"{{{ns}}}r/{{{ns}}}t")
            ))
    return shared_strings


# =============================================================================
# CELLS
# =============================================================================

def _cell_value(cell_el: ET.Element, shared_strings: List[str]) -> Any:
    ns = NS["main"]
    data_type = cell_el.get("t")

    if data_type == "inlineStr":
        is_el = cell_el.find(f"{{{ns}}}is")
        if is_el is None:
            return None
        return "".join(t.text or "" for t in is_el.iter(f"{{{ns}}}t"))

    v_el = cell_el.find(f"{{{ns}}}v")
    raw_value = v_el.text if v_el is not None else None
    if raw_value is None:
        return None

    if data_type == "s":
        try:
            return shared_strings[int(raw_value)]
        except (ValueError, IndexError):
            return raw_value
    if data_type == "b":
        return raw_value == "1"
    if data_type in ("str", "e", "d"):
        return raw_value
    return _coerce_number(raw_value)


def parse_sheet_rows(sheet_el: ET.Element, shared_strings: List[str]) -> List[List[Any]]:
    """Build a dense row matrix from a worksheet's sheetData."""
    ns = NS["main"]
    sheet_data = sheet_el.find(f"{{{ns}}}sheetData")
    if sheet_data is None:
        return []

    sparse: Dict[int, Dict[int, Any]] = {}
    next_row = 1
    for row_el in sheet_data.findall(f"{{{ns}}}row"):
        row_num = int(row_el.get("r", next_row))
        next_row = row_num + 1
        cells = sparse.setdefault(row_num, {})
        next_col = 1
        for cell_el in row_el.findall(f"{{{ns}}}c"):
            cell_ref = cell_el.get("r")
            col_num = next_col
            if cell_ref:
                try:
                    _, col_num, _ = parse_cell_ref(cell_ref)
                except ValueError:
                    continue
            next_col = col_num + 1
            value = _cell_value(cell_el, shared_strings)
            if value is not None:
                cells[col_num] = value

    if not sparse:
        return []

    # Leading blank rows are dropped so the first populated row is the header
    populated = sorted(r for r, cells in sparse.items() if cells)
    if not populated:
        return []
    first_row, last_row = populated[0], populated[-1]
    width = max((max(cells) for cells in sparse.values() if cells), default=0)

    rows: List[List[Any]] = []
    for row_num in range(first_row, last_row + 1):
        cells = sparse.get(row_num, {})
        rows.append([cells.get(col) for col in range(1, width + 1)])
    return _normalise(rows)


# =============================================================================
# WORKBOOK PARSING
# =============================================================================

def xlsx_to_workbook(content: bytes, filename: Optional[str] = None) -> Workbook:
    """Decode XLSX bytes into a Workbook, one Sheet per worksheet."""
    try:
        zf = zipfile.ZipFile(io.BytesIO(content), "r")
    except zipfile.BadZipFile as e:
        raise WorkbookDecodeError(f"Not a valid XLSX archive: {e}") from e

    with zf:
        try:
            shared_strings = _parse_shared_strings(zf)

            with zf.open("xl/workbook.xml") as f:
                wb_root = ET.parse(f).getroot()
            with zf.open("xl/_rels/workbook.xml.rels") as f:
                rels_root = ET.parse(f).getroot()
        except (KeyError, ET.ParseError) as e:
            raise WorkbookDecodeError(f"Missing or corrupt workbook part: {e}") from e

        ns = NS["main"]
        r_ns = NS["r"]
        id_to_target: Dict[str, str] = {}
        for rel in rels_root.findall(f"{{{NS['rel']}}}Relationship"):
            rel_id = rel.get("Id")
            target = rel.get("Target")
            if rel_id and target:
                id_to_target[rel_id] = target

        sheets: List[Sheet] = []
        sheets_el = wb_root.find(f"{{{ns}}}sheets")
        for sheet in (sheets_el.findall(f"{{{ns}}}sheet") if sheets_el is not None else []):
            name = sheet.get("name") or f"Sheet{len(sheets) + 1}"
            target = id_to_target.get(sheet.get(f"{{{r_ns}}}id"), "")
            sheet_path = target[1:] if target.startswith("/") else f"xl/{target}"

            try:
                with zf.open(sheet_path) as f:
                    sheet_el = ET.parse(f).getroot()
            except KeyError:
                logger.warning(f"Worksheet part {sheet_path} for '{name}' not found, skipping")
                continue
            except ET.ParseError as e:
                raise WorkbookDecodeError(f"Corrupt worksheet '{name}': {e}") from e

            sheets.append(Sheet(name=name, rows=parse_sheet_rows(sheet_el, shared_strings)))

    return Workbook(filename=filename, sheets=sheets)


def csv_to_workbook(content: bytes, filename: Optional[str] = None) -> Workbook:
    """Decode CSV bytes into a single-sheet Workbook.

    Numeric-looking tokens become ints/floats so that type inference sees
    native numbers, as it does for XLSX numeric cells.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    rows: List[List[Any]] = []
    for record in csv.reader(io.StringIO(text)):
        row: List[Any] = []
        for token in record:
            if token == "":
                row.append(None)
            elif re.match(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", token.strip()):
                row.append(_coerce_number(token.strip()))
            else:
                row.append(token)
        rows.append(row)

    name = Path(filename).stem if filename else "Sheet1"
    return Workbook(filename=filename, sheets=[Sheet(name=name, rows=_normalise(rows))])


def decode_workbook(content: bytes, filename: str) -> Workbook:
    """Pick a decoder from the file extension."""
    suffix = Path(filename).suffix.lower()
    if suffix == ".xlsx":
        workbook = xlsx_to_workbook(content, filename)
    elif suffix == ".csv":
        workbook = csv_to_workbook(content, filename)
    else:
        raise WorkbookDecodeError(f"Unsupported file type: {suffix or filename}")

    logger.info(
        f"Decoded {filename}: {len(workbook.sheets)} sheets "
        f"({', '.join(f'{s.name}={len(s.rows)} rows' for s in workbook.sheets)})"
    )
    return workbook
