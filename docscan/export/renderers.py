"""Render processed documents to Markdown, DOCX and PDF.

All formats share one layout: title, a document type and confidence
line, then one heading per section followed by its non-empty lines.
"""

import io
import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass

from docx import Document as DocxDocument
from docx.shared import Pt
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from docscan.analysis.section_segmenter import Section
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

_REPLACEMENTS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2022": "-",
    "\u00a0": " ",
}
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
# The built-in PDF fonts only cover Latin-1.
_NON_LATIN1_RE = re.compile(r"[^\x20-\x7e\xa0-\xff]")

PDF_WRAP_CHARS = 95
PDF_LINE_HEIGHT = 14
PDF_LEFT_MARGIN = 50
PDF_TOP_MARGIN = 42
PDF_BOTTOM_MARGIN = 60


@dataclass
class ExportPayload:
    """Content handed to an exporter."""

    title: str
    doc_type: str
    mean_confidence: int
    sections: Sequence[Section]

    @property
    def summary_line(self) -> str:
        return f"Document Type: {self.doc_type} | Confidence: {self.mean_confidence}%"


def sanitize_text(text: str) -> str:
    """Normalize OCR text for export.

    Applies NFKC normalization (which also splits ligatures), maps
    typographic quotes, dashes and bullets to ASCII, and strips control
    characters that XML-based formats reject.
    """
    text = unicodedata.normalize("NFKC", text or "")
    for src, dst in _REPLACEMENTS.items():
        text = text.replace(src, dst)
    return _CONTROL_RE.sub("", text)


def _content_lines(section: Section) -> list[str]:
    lines = (line.strip() for line in sanitize_text(section.content).split("\n"))
    return [line for line in lines if line]


def render_markdown(payload: ExportPayload) -> str:
    """Render a payload as a Markdown document."""
    parts = [f"# {sanitize_text(payload.title)}", "", f"_{payload.summary_line}_", ""]
    for section in payload.sections:
        parts.append(f"## {sanitize_text(section.heading) or 'Section'}")
        parts.append("")
        parts.extend(_content_lines(section))
        parts.append("")
    return "\n".join(parts)


def render_docx(payload: ExportPayload) -> bytes:
    """Render a payload as a DOCX file.

    Returns:
        The encoded ``.docx`` file contents.
    """
    doc = DocxDocument()
    doc.add_heading(sanitize_text(payload.title), level=0)
    summary = doc.add_paragraph()
    run = summary.add_run(payload.summary_line)
    run.bold = True
    run.font.size = Pt(11)

    for section in payload.sections:
        doc.add_heading(sanitize_text(section.heading) or "Section", level=1)
        for line in _content_lines(section):
            doc.add_paragraph(line)

    buffer = io.BytesIO()
    doc.save(buffer)
    logger.info(
        "Rendered DOCX '%s' with %d sections", payload.title, len(payload.sections)
    )
    return buffer.getvalue()


def wrap_line(text: str, max_chars: int = PDF_WRAP_CHARS) -> list[str]:
    """Hard-wrap a line into chunks of at most ``max_chars`` characters."""
    text = text.strip()
    return [text[i : i + max_chars] for i in range(0, len(text), max_chars)]


def render_pdf(payload: ExportPayload) -> bytes:
    """Render a payload as a paginated A4 PDF.

    Lines are hard-wrapped at :data:`PDF_WRAP_CHARS` characters and a new
    page starts when the bottom margin is reached. Characters outside
    Latin-1 are dropped.

    Returns:
        The encoded PDF file contents.
    """
    pdf = FPDF(unit="pt", format="A4")
    pdf.set_margins(left=PDF_LEFT_MARGIN, top=PDF_TOP_MARGIN)
    pdf.set_auto_page_break(auto=True, margin=PDF_BOTTOM_MARGIN)
    pdf.add_page()

    def draw(text: str, style: str = "", size: int = 11) -> None:
        safe = _NON_LATIN1_RE.sub("", sanitize_text(text))
        if not safe.strip():
            return
        pdf.set_font("Helvetica", style, size)
        pdf.cell(0, PDF_LINE_HEIGHT, safe, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    draw(payload.title, "B", 16)
    pdf.ln(6)
    draw(payload.summary_line, "B", 11)
    pdf.ln(10)

    for section in payload.sections:
        draw(section.heading or "Section", "B", 13)
        for line in _content_lines(section):
            for chunk in wrap_line(line):
                draw(chunk)
        pdf.ln(8)

    logger.info(
        "Rendered PDF '%s' with %d sections on %d pages",
        payload.title,
        len(payload.sections),
        pdf.page_no(),
    )
    return bytes(pdf.output())
