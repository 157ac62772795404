"""Text helpers shared by the content parsers."""

from __future__ import annotations

import re
from bs4 import BeautifulSoup

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run into a single space."""
    return " ".join(text.split())


def bounded(text: str | None, limit: int) -> str | None:
    """Trim to ``limit`` characters; empty text becomes ``None``."""
    if not text:
        return None
    text = text.strip()[:limit].strip()
    return text or None


def slugify(text: str) -> str:
    """Lower-case and replace runs of non ``[a-z0-9]`` with ``-``."""
    return _SLUG_RE.sub("-", text.lower())


def strip_html(html: str) -> str:
    """Drop scripts, styles and markup, returning whitespace-collapsed text."""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup(["script", "style"]):
        node.decompose()
    return collapse_whitespace(soup.get_text(" "))


def excerpt_around(text: str, query: str, *, radius: int = 200) -> str | None:
    """Return the whitespace-collapsed window around the first match of ``query``."""
    if not query:
        return None
    idx = text.lower().find(query.lower())
    if idx == -1:
        return None
    start = max(0, idx - radius)
    return collapse_whitespace(text[start : idx + len(query) + radius])
