"""Render a manuscript to PDF with fpdf2.

The document opens with a dark cover page (title and genre) followed by the
chapters and their scenes. Content pages are numbered from 1; the cover is
not counted.
"""
from __future__ import annotations

import textwrap
import unicodedata
from typing import Iterable

from fpdf import FPDF

from .text_utils import clean, html_to_text


class PDFExportError(RuntimeError):
    """Raised when exporting data to PDF fails."""


_PDF_LATIN1_REPLACEMENTS = {
    ord("\u2010"): "-",  # hyphen
    ord("\u2011"): "-",  # non-breaking hyphen
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u2212"): "-",  # minus sign
    ord("\u2500"): "-",  # box drawing horizontal
    ord("\u2018"): "'",
    ord("\u2019"): "'",
    ord("\u201A"): "'",
    ord("\u201C"): '"',
    ord("\u201D"): '"',
    ord("\u201E"): '"',
    ord("\u2026"): "...",
    ord("\u00A0"): " ",  # non-breaking space
    ord("\u2009"): " ",  # thin space
    ord("\u202F"): " ",  # narrow no-break space
    ord("\u200B"): "",  # zero-width space
    ord("\ufeff"): "",  # BOM
}

MARGIN = 25
COVER_FILL = (15, 15, 15)
COVER_TITLE_COLOR = (255, 255, 255)
COVER_GENRE_COLOR = (150, 150, 150)
CHAPTER_COLOR = (20, 20, 20)
SCENE_TITLE_COLOR = (80, 80, 80)
BODY_COLOR = (30, 30, 30)
RULE_COLOR = (200, 200, 200)


def _pdf_safe_text(text: str) -> str:
    """Return ``text`` normalised for the PDF Latin-1 core fonts."""

    normalized = unicodedata.normalize("NFKC", text or "")
    normalized = normalized.replace("\t", " ")
    replaced = normalized.translate(_PDF_LATIN1_REPLACEMENTS)
    return replaced.encode("latin-1", "replace").decode("latin-1")


def _pdf_wrapped_text(text: str, *, width: int = 90) -> str:
    safe_text = _pdf_safe_text(text)
    if not safe_text:
        return ""

    wrapped_lines = []
    for raw_line in safe_text.splitlines():
        if not raw_line:
            wrapped_lines.append("")
            continue
        line_chunks = textwrap.wrap(
            raw_line,
            width=width,
            break_long_words=True,
            break_on_hyphens=False,
        )
        wrapped_lines.extend(line_chunks or [""])

    return "\n".join(wrapped_lines)


class ManuscriptPDF(FPDF):
    """FPDF document that numbers every page after the cover."""

    def footer(self) -> None:
        if self.page_no() <= 1:
            return
        self.set_y(-15)
        self.set_font("Helvetica", "", 9)
        self.set_text_color(*COVER_GENRE_COLOR)
        self.cell(0, 10, str(self.page_no() - 1), align="C")


def _safe_multi_cell(pdf: FPDF, width: float, height: float, text: str, *, align: str = "L") -> None:
    """Render ``text`` within a multi-cell, retrying with a fresh line on failure."""

    sanitized = _pdf_wrapped_text(text)
    if not sanitized:
        return

    try:
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(width, height, sanitized, align=align)
    except Exception:
        pdf.ln(height)
        pdf.set_x(pdf.l_margin)
        try:
            pdf.multi_cell(width, height, sanitized, align=align)
        except Exception as exc:
            raise PDFExportError(f"Failed to render PDF content: {exc}") from exc


def _draw_cover(pdf: ManuscriptPDF, title: str, genre: str, width: float) -> None:
    pdf.add_page()
    pdf.set_fill_color(*COVER_FILL)
    pdf.rect(0, 0, pdf.w, pdf.h, style="F")

    pdf.set_y(pdf.h / 2 - 20)
    pdf.set_font("Helvetica", "B", 28)
    pdf.set_text_color(*COVER_TITLE_COLOR)
    _safe_multi_cell(pdf, width, 12, title, align="C")

    if genre:
        pdf.ln(8)
        pdf.set_font("Helvetica", "", 12)
        pdf.set_text_color(*COVER_GENRE_COLOR)
        _safe_multi_cell(pdf, width, 6, genre, align="C")


def build_manuscript_pdf(project: object, manuscript: Iterable[object]) -> ManuscriptPDF:
    pdf = ManuscriptPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=MARGIN)
    pdf.set_margins(MARGIN, MARGIN, MARGIN)

    effective_width = pdf.w - pdf.l_margin - pdf.r_margin
    title = clean(getattr(project, "title", "")) or "Untitled Project"
    _draw_cover(pdf, title, clean(getattr(project, "genre", "")), effective_width)

    pdf.add_page()
    for entry in manuscript:
        pdf.ln(8)
        pdf.set_font("Helvetica", "B", 14)
        pdf.set_text_color(*CHAPTER_COLOR)
        chapter_title = clean(getattr(entry.chapter, "title", "")) or "Untitled Chapter"
        _safe_multi_cell(pdf, effective_width, 7, chapter_title.upper())
        pdf.ln(4)

        pdf.set_draw_color(*RULE_COLOR)
        pdf.line(pdf.l_margin, pdf.get_y(), pdf.l_margin + effective_width, pdf.get_y())
        pdf.ln(8)

        for scene in entry.scenes:
            text = html_to_text(getattr(scene, "content", ""))
            if not text:
                continue
            scene_title = clean(getattr(scene, "title", ""))
            if scene_title:
                pdf.set_font("Helvetica", "B", 10)
                pdf.set_text_color(*SCENE_TITLE_COLOR)
                _safe_multi_cell(pdf, effective_width, 5, scene_title)
                pdf.ln(3)

            pdf.set_font("Helvetica", "", 11)
            pdf.set_text_color(*BODY_COLOR)
            for paragraph in text.split("\n"):
                if not paragraph.strip():
                    continue
                _safe_multi_cell(pdf, effective_width, 5.5, paragraph.strip())
                pdf.ln(4)
            pdf.ln(4)

    return pdf


def render_manuscript_pdf(project: object, manuscript: Iterable[object]) -> bytes:
    """Return the manuscript of ``project`` as PDF bytes."""

    pdf = build_manuscript_pdf(project, manuscript)
    try:
        return bytes(pdf.output())
    except Exception as exc:
        raise PDFExportError(f"Unable to export PDF: {exc}") from exc


__all__ = [
    "ManuscriptPDF",
    "PDFExportError",
    "render_manuscript_pdf",
]
