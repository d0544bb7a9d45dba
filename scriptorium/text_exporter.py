"""Helpers for exporting a manuscript to plain text."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .text_utils import clean, html_to_text

TITLE_RULE = "─" * 50
CHAPTER_RULE = "─" * 30


class TextExportError(RuntimeError):
    """Raised when exporting data to a text file fails."""


def render_manuscript_text(project: object, manuscript: Iterable[object]) -> str:
    """Return the manuscript of ``project`` as a UTF-8 friendly string.

    ``manuscript`` yields objects with ``chapter`` and ``scenes`` attributes
    (see :class:`scriptorium.services.manuscript.ManuscriptChapter`).
    """

    title = clean(getattr(project, "title", "")) or "Untitled Project"
    lines: List[str] = [title.upper()]
    genre = clean(getattr(project, "genre", ""))
    if genre:
        lines.append(genre)
    lines.extend(["", TITLE_RULE, ""])

    for entry in manuscript:
        chapter_title = clean(getattr(entry.chapter, "title", "")) or "Untitled Chapter"
        lines.extend(["", chapter_title.upper(), CHAPTER_RULE, ""])
        for scene in entry.scenes:
            scene_title = clean(getattr(scene, "title", ""))
            if scene_title:
                lines.extend([scene_title, ""])
            text = html_to_text(getattr(scene, "content", ""))
            if text:
                lines.extend([text, ""])

    return "\n".join(lines).rstrip() + "\n"


def export_manuscript_to_txt(
    project: object,
    manuscript: Iterable[object],
    *,
    output_path: Optional[Path] = None,
) -> Path:
    """Write the manuscript of ``project`` to a UTF-8 encoded text file."""

    text_blob = render_manuscript_text(project, manuscript)
    resolved_path = Path(output_path) if output_path else Path("manuscript.txt")

    try:
        resolved_path.write_text(text_blob, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - IO failure
        raise TextExportError(f"Unable to export TXT file: {exc}") from exc

    return resolved_path


__all__ = ["TextExportError", "export_manuscript_to_txt", "render_manuscript_text"]
