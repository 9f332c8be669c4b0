"""PDF table renderer - lays out head/body tables, one page per sheet."""
from __future__ import annotations

from io import BytesIO
from typing import Any, List, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .schemas import PdfTable


PDF_MEDIA_TYPE = "application/pdf"

_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2980BA")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 8),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F5F5")]),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
])


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def render_tables_pdf(tables: Sequence[PdfTable], landscape_page: bool = True) -> bytes:
    """Render each table on its own page, titled with the sheet name."""
    buf = BytesIO()
    pagesize = landscape(A4) if landscape_page else A4
    doc = SimpleDocTemplate(buf, pagesize=pagesize, leftMargin=28, rightMargin=28, topMargin=28, bottomMargin=28)
    styles = getSampleStyleSheet()

    story: List[Any] = []
    for index, table in enumerate(tables):
        if index:
            story.append(PageBreak())
        story.append(Paragraph(table.sheet_name, styles["Heading2"]))
        story.append(Spacer(1, 6))

        data = [[_cell_text(v) for v in row] for row in table.head + table.body]
        if not data or not data[0]:
            story.append(Paragraph("(empty sheet)", styles["Italic"]))
            continue

        pdf_table = Table(data, repeatRows=1)
        pdf_table.setStyle(_TABLE_STYLE)
        story.append(pdf_table)

    if not story:
        story.append(Spacer(1, 1))

    doc.build(story)
    return buf.getvalue()
