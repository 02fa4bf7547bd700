import io

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def _render_pdf(*pages: list[str]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    for lines in pages:
        y = 780
        for line in lines:
            c.drawString(60, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def lab_report_pdf_bytes() -> bytes:
    """Single-page lab report with a title line and one result row."""
    return _render_pdf(["Complete Blood Count", "Hemoglobin 13.5 g/dL"])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Discharge summary spread over two pages."""
    return _render_pdf(["Discharge summary"], ["Follow-up in two weeks"])


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    """Valid PDF whose only page carries no text (e.g. an unscanned form)."""
    return _render_pdf([])
