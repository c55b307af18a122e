"""
fir_pdf_builder.py -- FIR Drafting Backend
Renders an assembled FIR (RenderableDocument) into a printable PDF draft.

Helvetica core fonts only cover Latin-1, so Devanagari text is replaced with
'?' unless a Unicode TTF font is supplied (FIR_PDF_FONT in .env), e.g.
NotoSansDevanagari-Regular.ttf.
"""

import logging
from pathlib import Path
from typing import Optional

from fpdf import FPDF

from fir_schemas import DocumentFormat, RenderableDocument, Section

logger = logging.getLogger("fir.pdf_builder")

C_HEADER    = (30,  58, 138)
C_ACCENT    = (37,  99, 235)
C_GRAY      = (100, 116, 139)
C_BLACK     = (15,  23,  42)
C_MISSING   = (180, 60,  0)
C_FILLED    = (0,   100, 0)

BLANK       = "_________________________________"
UNICODE_FAMILY = "FIRUnicode"


class FIRPdf(FPDF):
    """FPDF with an optional Unicode font registered under one family name."""

    def __init__(self, font_path: Optional[Path] = None):
        super().__init__()
        self.family_name = "Helvetica"
        self.unicode = False
        if font_path:
            for style in ("", "B", "I"):
                self.add_font(UNICODE_FAMILY, style, str(font_path))
            self.family_name = UNICODE_FAMILY
            self.unicode = True

    def use(self, style: str = "", size: float = 9) -> None:
        self.set_font(self.family_name, style, size)

    def safe(self, value) -> str:
        text = str(value).strip() if value is not None else ""
        if self.unicode:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")


# ---------------------------------------------------------------------------
# Drawing helpers
# ---------------------------------------------------------------------------

def _start(pdf: FIRPdf, title: str, reference: str) -> None:
    """Header band + document title + case reference line."""
    pdf.set_fill_color(*C_HEADER)
    pdf.rect(0, 0, 210, 22, "F")
    pdf.set_text_color(255, 255, 255)
    pdf.use("B", 14)
    pdf.set_xy(10, 5)
    pdf.cell(190, 8, pdf.safe(title.upper()), align="C")
    pdf.use("I", 7)
    pdf.set_xy(10, 14)
    pdf.cell(190, 5, "DRAFT -- to be verified and signed before registration", align="C")

    pdf.set_text_color(*C_BLACK)
    pdf.use("", 9)
    pdf.set_xy(10, 26)
    pdf.multi_cell(190, 5, pdf.safe(reference))
    pdf.ln(3)


def _sec(pdf: FIRPdf, label: str) -> None:
    """Blue section heading strip."""
    pdf.set_fill_color(*C_ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.use("B", 9)
    pdf.set_x(10)
    pdf.cell(190, 6, "  " + pdf.safe(label).upper(), fill=True, ln=True)
    pdf.ln(2)


def _row(pdf: FIRPdf, label: str, value) -> None:
    """Single labelled value row; empty values print as a blank line to fill in."""
    pdf.set_x(12)
    pdf.use("B", 9)
    pdf.set_text_color(*C_BLACK)
    pdf.cell(55, 7, pdf.safe(label) + ":", border="B")
    pdf.use("", 9)
    text = pdf.safe(value)
    if text and text != "-":
        pdf.set_text_color(*C_FILLED)
        pdf.cell(133, 7, text, border="B", ln=True)
    else:
        pdf.set_text_color(*C_MISSING)
        pdf.cell(133, 7, BLANK, border="B", ln=True)
    pdf.set_text_color(*C_BLACK)
    pdf.ln(1)


def _block(pdf: FIRPdf, value, lines: int = 6) -> None:
    """Multi-line text block; an empty narrative leaves a shaded box."""
    pdf.set_x(12)
    pdf.use("", 9)
    text = pdf.safe(value)
    if text:
        pdf.set_text_color(*C_BLACK)
        pdf.multi_cell(186, 5, text, border=1)
    else:
        pdf.set_fill_color(255, 248, 230)
        pdf.cell(186, lines * 6, "", border=1, fill=True, ln=True)
    pdf.ln(2)


def _section_card(pdf: FIRPdf, section: Section) -> None:
    pdf.set_x(12)
    pdf.use("B", 9)
    pdf.set_text_color(*C_HEADER)
    pdf.cell(120, 6, pdf.safe(section.name))
    pdf.set_text_color(*C_ACCENT)
    pdf.cell(66, 6, pdf.safe(section.ipc), align="R", ln=True)
    if section.description:
        pdf.set_x(12)
        pdf.use("", 8)
        pdf.set_text_color(*C_GRAY)
        pdf.multi_cell(186, 4.5, pdf.safe(section.description))
    pdf.set_text_color(*C_BLACK)
    pdf.ln(1)


def _sig(pdf: FIRPdf, closing: list[str], signature: list[str]) -> None:
    """Date/place on the left, signature block on the right."""
    pdf.ln(6)
    pdf.use("", 9)
    rows = max(len(closing), len(signature))
    for i in range(rows):
        pdf.set_x(10)
        left = closing[i] if i < len(closing) else ""
        right = signature[i] if i < len(signature) else ""
        pdf.cell(95, 6, pdf.safe(left))
        pdf.cell(95, 6, pdf.safe(right), align="R", ln=True)
        if i == 0:
            pdf.ln(8)    # room for the signature


def _disclaimer(pdf: FIRPdf) -> None:
    pdf.ln(4)
    pdf.set_fill_color(254, 243, 199)
    pdf.set_draw_color(180, 120, 0)
    pdf.set_x(10)
    pdf.use("B", 8)
    pdf.set_text_color(120, 70, 0)
    pdf.cell(190, 5, "IMPORTANT NOTICE", border="TB", fill=True, ln=True, align="C")
    pdf.use("", 7.5)
    pdf.set_x(10)
    pdf.multi_cell(
        190, 4.5,
        "Sections listed under 'Details of Wrongdoings' were suggested automatically or entered by the "
        "officer. Verify every citation against the narrative before registering the FIR. "
        "Blank lines mark fields that are still missing.",
        border="LRB", fill=True,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_fir_pdf(doc: RenderableDocument, pdf_path: Path, font_path: Optional[Path] = None) -> None:
    """Write ``doc`` to ``pdf_path``. Plain documents print the narrative only."""
    pdf = FIRPdf(font_path)
    pdf.set_auto_page_break(auto=True, margin=18)
    pdf.add_page()
    pdf.set_margins(10, 10, 10)

    if doc.format is DocumentFormat.PLAIN:
        pdf.set_y(12)
        _block(pdf, doc.body)
        pdf.output(str(pdf_path))
        return

    _start(pdf, doc.title, doc.reference_line)

    _sec(pdf, "Complainant / Incident")
    for label, value in doc.header_fields:
        _row(pdf, label, value)
    pdf.ln(2)

    _sec(pdf, "Statement of the Complainant")
    _block(pdf, doc.body)

    if doc.sections:
        _sec(pdf, "Details of Wrongdoings")
        for section in doc.sections:
            _section_card(pdf, section)

    _sig(pdf, doc.closing, doc.signature)
    _disclaimer(pdf)
    pdf.output(str(pdf_path))
    logger.info("Wrote FIR PDF %s (%d sections)", pdf_path, len(doc.sections))
