"""XLSX Writer - builds a minimal OOXML package from named row matrices.

Produces the smallest package Excel and LibreOffice accept:
1. [Content_Types].xml and the package relationships
2. workbook.xml listing one sheet per matrix, in order
3. One worksheet per matrix with inline strings, numbers and booleans
"""

from __future__ import annotations

import math
import re
import zipfile
from datetime import date, datetime
from io import BytesIO
from typing import Any, List, Sequence, Tuple
from xml.etree import ElementTree as ET

from .parser import NS, col_index_to_letter


CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
WORKSHEET_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet"
STYLES_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles"
OFFICE_DOC_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_INVALID_SHEET_CHARS = re.compile(r"[\[\]\*\?/\\:]")
# Characters XML 1.0 cannot carry, even escaped
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _root(name: str, ns: str = NS["main"], **extra_ns: str) -> ET.Element:
    """Root element carrying its namespace declarations; children stay unprefixed."""
    root = ET.Element(name, xmlns=ns)
    for prefix, uri in extra_ns.items():
        root.set(f"xmlns:{prefix}", uri)
    return root


def _to_bytes(root: ET.Element) -> bytes:
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def safe_sheet_names(names: Sequence[str]) -> List[str]:
    """Apply Excel's sheet name rules (31 chars, no []*?/\\:) and de-duplicate."""
    result: List[str] = []
    seen = set()
    for index, name in enumerate(names):
        base = _INVALID_SHEET_CHARS.sub("_", _ILLEGAL_XML_CHARS.sub("", name or "")).strip("'")[:31] or f"Sheet{index + 1}"
        candidate = base
        suffix = 2
        while candidate.lower() in seen:
            tail = f" ({suffix})"
            candidate = base[:31 - len(tail)] + tail
            suffix += 1
        seen.add(candidate.lower())
        result.append(candidate)
    return result


# =============================================================================
# WORKSHEET
# =============================================================================

def _write_cell(row_el: ET.Element, ref: str, value: Any) -> None:
    if value is None or value == "":
        return

    cell_el = ET.SubElement(row_el, "c", r=ref)
    if isinstance(value, bool):
        cell_el.set("t", "b")
        ET.SubElement(cell_el, "v").text = "1" if value else "0"
    elif isinstance(value, (int, float)) and math.isfinite(value):
        ET.SubElement(cell_el, "v").text = repr(value) if isinstance(value, float) else str(value)
    else:
        if isinstance(value, (datetime, date)):
            text = value.isoformat()
        else:
            text = str(value)
        text = _ILLEGAL_XML_CHARS.sub("", text)
        cell_el.set("t", "inlineStr")
        is_el = ET.SubElement(cell_el, "is")
        t_el = ET.SubElement(is_el, "t")
        t_el.text = text
        if text != text.strip():
            t_el.set("xml:space", "preserve")


def build_worksheet_xml(rows: Sequence[Sequence[Any]]) -> bytes:
    """Serialize one row matrix as a worksheet part."""
    root = _root("worksheet")
    width = max((len(row) for row in rows), default=0)
    if rows and width:
        ET.SubElement(root, "dimension", ref=f"A1:{col_index_to_letter(width)}{len(rows)}")
    sheet_data = ET.SubElement(root, "sheetData")

    for row_index, row in enumerate(rows, start=1):
        row_el = ET.SubElement(sheet_data, "row", r=str(row_index))
        for col_index, value in enumerate(row, start=1):
            _write_cell(row_el, f"{col_index_to_letter(col_index)}{row_index}", value)
    return _to_bytes(root)


# =============================================================================
# PACKAGE PARTS
# =============================================================================

def _content_types_xml(sheet_count: int) -> bytes:
    root = _root("Types", CT_NS)
    ET.SubElement(root, "Default", Extension="rels",
                  ContentType="application/vnd.openxmlformats-package.relationships+xml")
    ET.SubElement(root, "Default", Extension="xml", ContentType="application/xml")
    ET.SubElement(root, "Override", PartName="/xl/workbook.xml",
                  ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml")
    ET.SubElement(root, "Override", PartName="/xl/styles.xml",
                  ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.styles+xml")
    for i in range(1, sheet_count + 1):
        ET.SubElement(root, "Override", PartName=f"/xl/worksheets/sheet{i}.xml",
                      ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml")
    return _to_bytes(root)


def _relationships_xml(relationships: List[Tuple[str, str, str]]) -> bytes:
    root = _root("Relationships", NS["rel"])
    for rel_id, rel_type, target in relationships:
        ET.SubElement(root, "Relationship", Id=rel_id, Type=rel_type, Target=target)
    return _to_bytes(root)


def _workbook_xml(names: Sequence[str]) -> bytes:
    root = _root("workbook", r=NS["r"])
    sheets_el = ET.SubElement(root, "sheets")
    for i, name in enumerate(names, start=1):
        sheet_el = ET.SubElement(sheets_el, "sheet", name=name, sheetId=str(i))
        sheet_el.set("r:id", f"rId{i}")
    return _to_bytes(root)


def _styles_xml() -> bytes:
    root = _root("styleSheet")
    fonts = ET.SubElement(root, "fonts", count="1")
    font = ET.SubElement(fonts, "font")
    ET.SubElement(font, "sz", val="11")
    ET.SubElement(font, "name", val="Calibri")
    fills = ET.SubElement(root, "fills", count="1")
    fill = ET.SubElement(fills, "fill")
    ET.SubElement(fill, "patternFill", patternType="none")
    borders = ET.SubElement(root, "borders", count="1")
    ET.SubElement(borders, "border")
    xfs = ET.SubElement(root, "cellStyleXfs", count="1")
    ET.SubElement(xfs, "xf", numFmtId="0", fontId="0", fillId="0", borderId="0")
    cell_xfs = ET.SubElement(root, "cellXfs", count="1")
    ET.SubElement(cell_xfs, "xf", numFmtId="0", fontId="0", fillId="0", borderId="0", xfId="0")
    return _to_bytes(root)


# =============================================================================
# WORKBOOK
# =============================================================================

def matrices_to_xlsx(named_matrices: Sequence[Tuple[str, Sequence[Sequence[Any]]]]) -> bytes:
    """Write (sheet name, row matrix) pairs to XLSX bytes, one sheet each.

    A workbook needs at least one sheet, so an empty input produces a
    single blank sheet.
    """
    if not named_matrices:
        named_matrices = [("Sheet1", [])]

    names = safe_sheet_names([name for name, _ in named_matrices])
    sheet_count = len(names)

    workbook_rels = [
        (f"rId{i}", WORKSHEET_TYPE, f"worksheets/sheet{i}.xml")
        for i in range(1, sheet_count + 1)
    ]
    workbook_rels.append((f"rId{sheet_count + 1}", STYLES_TYPE, "styles.xml"))

    out = BytesIO()
    with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", _content_types_xml(sheet_count))
        zf.writestr("_rels/.rels", _relationships_xml([("rId1", OFFICE_DOC_TYPE, "xl/workbook.xml")]))
        zf.writestr("xl/workbook.xml", _workbook_xml(names))
        zf.writestr("xl/_rels/workbook.xml.rels", _relationships_xml(workbook_rels))
        zf.writestr("xl/styles.xml", _styles_xml())
        for i, (_, rows) in enumerate(named_matrices, start=1):
            zf.writestr(f"xl/worksheets/sheet{i}.xml", build_worksheet_xml(rows))

    return out.getvalue()
