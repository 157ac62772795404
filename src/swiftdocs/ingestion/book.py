"""Markdown book chapters, split into chapter and section records."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from swiftdocs.models import NormalizedRecord, make_record_id
from swiftdocs.utils.files import read_text, relative_key
from swiftdocs.utils.text import bounded, collapse_whitespace, slugify

LOGGER = logging.getLogger(__name__)

BOOK_BASE_URL = "https://docs.swift.org/swift-book/documentation/the-swift-programming-language"
DEFAULT_CHAPTER = "General"
INTRO_LIMIT = 500
CHAPTER_SNIPPET_LIMIT = 500
SECTION_SUMMARY_LIMIT = 300
SECTION_SNIPPET_LIMIT = 400

_TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_INTRO_END_RE = re.compile(r"^(#{1,6}\s|```)", re.MULTILINE)
_SECTION_RE = re.compile(r"^##[ \t]+(.+)$", re.MULTILINE)
_SECTION_END_RE = re.compile(r"\n##?\s")
_SECTION_PARAGRAPH_RE = re.compile(r"^##[ \t]+[^\n]+\n\n(.*?)(?=\n###|\n```|\n\n|$)", re.DOTALL)
_SWIFT_FENCE_RE = re.compile(r"```swift\n(.*?)```", re.DOTALL)


def chapter_for(path: Path, root: Path) -> str:
    parts = Path(relative_key(path, root)).parts
    return parts[0] if len(parts) > 1 else DEFAULT_CHAPTER


def chapter_url(stem: str) -> str:
    return f"{BOOK_BASE_URL}/{slugify(stem)}"


def _swift_snippet(text: str, limit: int) -> str | None:
    match = _SWIFT_FENCE_RE.search(text)
    return bounded(match.group(1), limit) if match else None


def _intro(content: str, title_match: re.Match | None) -> str:
    if title_match is None:
        return ""
    rest = content[title_match.end() :]
    end = _INTRO_END_RE.search(rest)
    if end is not None:
        rest = rest[: end.start()]
    return collapse_whitespace(rest)[:INTRO_LIMIT].strip()


def parse_chapter(content: str, path: Path, root: Path) -> List[NormalizedRecord]:
    """Return the chapter record followed by one record per ``##`` section."""
    stem = path.stem
    chapter = chapter_for(path, root)
    title_match = _TITLE_RE.search(content)
    title = title_match.group(1).strip() if title_match else stem
    url = chapter_url(stem)

    records = [
        NormalizedRecord(
            record_id=make_record_id("book-chapter", chapter, stem),
            source="book-chapter",
            display_name=title,
            group_name=chapter,
            summary=_intro(content, title_match) or f"Swift Programming Language: {title}",
            code_snippet=_swift_snippet(content, CHAPTER_SNIPPET_LIMIT),
            external_url=url,
            source_path=str(path),
        )
    ]

    seen = {records[0].record_id}
    for match in _SECTION_RE.finditer(content):
        section_title = match.group(1).strip()
        body = content[match.start() :]
        end = _SECTION_END_RE.search(body)
        if end is not None:
            body = body[: end.start()]

        paragraph = _SECTION_PARAGRAPH_RE.match(body)
        summary = collapse_whitespace(paragraph.group(1))[:SECTION_SUMMARY_LIMIT].strip() if paragraph else ""
        snippet = _swift_snippet(body, SECTION_SNIPPET_LIMIT)
        if not summary and not snippet:
            continue

        anchor = slugify(section_title)
        record_id = make_record_id("book-chapter", chapter, f"{stem}#{anchor}")
        if record_id in seen:
            continue
        seen.add(record_id)
        records.append(
            NormalizedRecord(
                record_id=record_id,
                source="book-chapter",
                display_name=section_title,
                group_name=chapter,
                category=title,
                summary=summary or f"{title}: {section_title}",
                code_snippet=snippet,
                external_url=f"{url}#{anchor}",
                source_path=str(path),
            )
        )
    return records


def parse_chapter_file(path: Path, root: Path) -> List[NormalizedRecord]:
    try:
        return parse_chapter(read_text(path), path, root)
    except (OSError, UnicodeDecodeError, RecursionError) as exc:
        LOGGER.debug("Skipping book chapter %s: %s", path, exc)
        return []
