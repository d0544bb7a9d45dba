"""Plain-text helpers for the HTML the scene editor stores."""
from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_BLOCK_TAGS = [
    "p",
    "div",
    "li",
    "blockquote",
    "pre",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
]

_WORD_PATTERN = re.compile(r"\S+")


def html_to_text(html: Optional[str]) -> str:
    """Return ``html`` as plain text with one blank line between paragraphs."""

    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_after("\n")

    paragraphs = []
    for line in soup.get_text().splitlines():
        collapsed = " ".join(line.split())
        if collapsed:
            paragraphs.append(collapsed)
    return "\n\n".join(paragraphs)


def count_words(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(_WORD_PATTERN.findall(text))


def clean(value: object) -> str:
    """Return ``value`` as a stripped string (``""`` for ``None``)."""

    if value is None:
        return ""
    return str(value).strip()


def clean_or_none(value: object) -> Optional[str]:
    return clean(value) or None
