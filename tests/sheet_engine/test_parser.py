"""Tests for workbook decoding and the sheet model invariants."""

import zipfile
from io import BytesIO
from xml.etree import ElementTree as ET

import pytest

from services.sheet_engine import RowShapeError, Sheet, WorkbookDecodeError, decode_workbook
from services.sheet_engine.parser import col_index_to_letter, parse_cell_ref, parse_sheet_rows


MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"


class TestSheetModel:

    def test_short_rows_are_padded(self):
        sheet = Sheet(name="s", rows=[["A", "B", "C"], ["1"], ["1", "2", "3"]])
        assert sheet.rows[1] == ["1", None, None]

    def test_wide_rows_rejected(self):
        with pytest.raises(RowShapeError):
            Sheet(name="s", rows=[["A"], ["1", "2"]])

    def test_append_row_pads(self):
        sheet = Sheet(name="s", rows=[["A", "B"]])
        index = sheet.append_row(["x"])
        assert index == 1
        assert sheet.rows[1] == ["x", None]

    def test_append_to_empty_sheet_rejected(self):
        with pytest.raises(RowShapeError):
            Sheet(name="s").append_row()


class TestCellRefs:

    def test_parse_cell_ref(self):
        assert parse_cell_ref("AA100") == ("AA", 27, 100)

    def test_col_index_to_letter(self):
        assert col_index_to_letter(1) == "A"
        assert col_index_to_letter(28) == "AB"


class TestXlsxDecoding:

    def test_shared_strings_and_sparse_cells(self):
        xml = (
            f'<worksheet xmlns="{MAIN_NS}"><sheetData>'
            '<row r="2"><c r="A2" t="s"><v>0</v></c><c r="C2" t="s"><v>1</v></c></row>'
            '<row r="3"><c r="A3"><v>12</v></c><c r="B3" t="b"><v>1</v></c><c r="C3"><v>2.5</v></c></row>'
            '</sheetData></worksheet>'
        )
        rows = parse_sheet_rows(ET.fromstring(xml), ["Name", "Score"])
        # Leading blank row dropped; first populated row becomes the header
        assert rows == [["Name", None, "Score"], [12, True, 2.5]]

    def test_not_a_zip(self):
        with pytest.raises(WorkbookDecodeError):
            decode_workbook(b"definitely not xlsx", "broken.xlsx")

    def test_zip_without_workbook(self):
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("hello.txt", "hi")
        with pytest.raises(WorkbookDecodeError):
            decode_workbook(buf.getvalue(), "empty.xlsx")

    def test_unsupported_extension(self):
        with pytest.raises(WorkbookDecodeError):
            decode_workbook(b"", "notes.txt")


class TestCsvDecoding:

    def test_numbers_coerced(self):
        content = "Item,Qty,Price\nApple,3,1.25\nPear,,0.5\n".encode("utf-8")
        workbook = decode_workbook(content, "fruit.csv")

        assert workbook.sheet_names == ["fruit"]
        assert workbook.sheets[0].rows == [
            ["Item", "Qty", "Price"],
            ["Apple", 3, 1.25],
            ["Pear", None, 0.5],
        ]

    def test_bom_and_ragged_rows(self):
        content = "\ufeffA,B\n1\n2,3,4\n".encode("utf-8")
        rows = decode_workbook(content, "ragged.csv").sheets[0].rows
        assert rows == [["A", "B", None], [1, None, None], [2, 3, 4]]
