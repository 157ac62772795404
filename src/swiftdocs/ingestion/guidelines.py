"""Guideline page parsing (HTML and Markdown)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup

from swiftdocs.models import NormalizedRecord, make_record_id
from swiftdocs.utils.files import read_text, relative_key
from swiftdocs.utils.text import bounded, collapse_whitespace

LOGGER = logging.getLogger(__name__)

GUIDELINE_SUFFIXES = (".html", ".md", ".markdown")
SUMMARY_LIMIT = 400

_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


@dataclass(slots=True)
class HtmlPage:
    title: str | None
    url: str | None
    text: str


def parse_html_page(html: str) -> HtmlPage:
    """Extract ``<title>``, the canonical link and plain body text."""
    soup = BeautifulSoup(html, "html.parser")
    title = None
    if soup.title is not None and soup.title.string:
        title = collapse_whitespace(soup.title.string) or None

    url = None
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in (value.lower() for value in rel):
            url = link["href"]
            break

    for node in soup(["script", "style"]):
        node.decompose()
    body = soup.body if soup.body is not None else soup
    return HtmlPage(title=title, url=url, text=collapse_whitespace(body.get_text(" ")))


def parse_guideline_page(content: str, path: Path, root: Path) -> NormalizedRecord:
    """Turn one guideline page into a record keyed by its path below ``root``."""
    if path.suffix.lower() == ".html":
        page = parse_html_page(content)
        title, url, summary = page.title or path.stem, page.url, page.text[:SUMMARY_LIMIT]
    else:
        match = _HEADING_RE.search(content)
        title = match.group(1).strip() if match else path.stem
        url = None
        summary = collapse_whitespace(content)[:SUMMARY_LIMIT]

    return NormalizedRecord(
        record_id=make_record_id("hig-page", None, relative_key(path, root)),
        source="hig-page",
        display_name=title,
        summary=bounded(summary, SUMMARY_LIMIT),
        external_url=url,
        source_path=str(path),
    )


def parse_guideline_file(path: Path, root: Path) -> NormalizedRecord | None:
    try:
        return parse_guideline_page(read_text(path), path, root)
    except (OSError, UnicodeDecodeError, RecursionError) as exc:
        LOGGER.debug("Skipping guideline page %s: %s", path, exc)
        return None
