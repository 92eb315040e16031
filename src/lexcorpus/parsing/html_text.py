"""HTML to plain-text conversion for legislation markup.

Block-level elements become line breaks and inline tags become spaces, so
"Điều N." headings stay on their own line while bold/italic runs inside a
sentence are kept together. Entities are decoded by BeautifulSoup.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup

BLOCK_TAGS = ["p", "div", "tr", "li", "h1", "h2", "h3", "h4", "h5", "h6", "section", "article"]
DROP_TAGS = ["script", "style", "noscript"]

_SPACES = re.compile(r"[ \t\f\v]+")
_MANY_NEWLINES = re.compile(r"\n{3,}")
_WS = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space."""
    return _WS.sub(" ", text or "").strip()


def strip_html(html: str | None) -> str:
    """Strip markup to plain text, one block per line."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for bad in soup(DROP_TAGS):
        bad.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for el in soup.find_all(BLOCK_TAGS):
        el.insert_before("\n")
        el.insert_after("\n")
    text = soup.get_text(" ")
    text = text.replace("\u200b", "").replace("\xa0", " ")
    text = _SPACES.sub(" ", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _MANY_NEWLINES.sub("\n\n", text)
    return text.strip()


__all__ = ["strip_html", "normalize_whitespace"]
