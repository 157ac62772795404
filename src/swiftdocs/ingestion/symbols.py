"""Symbol documentation parsing.

DocC render JSON is loosely shaped, so every attribute is read through an
ordered chain of lookups and the first non-empty value wins.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Iterable, List

from swiftdocs.ingestion.guidelines import parse_html_page
from swiftdocs.models import NormalizedRecord, make_record_id, unique_labels
from swiftdocs.utils.files import read_text, relative_key
from swiftdocs.utils.text import bounded, collapse_whitespace

LOGGER = logging.getLogger(__name__)

DOCS_BASE_URL = "https://developer.apple.com"
SYMBOL_SUFFIXES = (".json", ".md", ".markdown", ".html")
SUMMARY_LIMIT = 500

_DOC_URI_RE = re.compile(r"^doc://[^/]+/documentation/(.*)$", re.IGNORECASE)
_FENCE_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)
_DOCUMENTATION_RE = re.compile(r"(^|/)documentation/")


def _get(data: Any, *keys: str) -> Any:
    """Walk nested mappings, returning ``None`` as soon as a step is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _first(attempts: Iterable[Callable[[], Any]]) -> Any:
    for attempt in attempts:
        value = attempt()
        if value:
            return value
    return None


def _first_item(value: Any) -> Any:
    return value[0] if isinstance(value, list) and value else None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def flatten_inline(nodes: Any) -> str:
    """Concatenate ``text``/``code``/``spelling`` leaves of inline content."""
    if not nodes:
        return ""
    items = nodes if isinstance(nodes, list) else [nodes]
    parts: List[str] = []
    for node in items:
        if not node:
            continue
        if isinstance(node, str):
            parts.append(node)
            continue
        if not isinstance(node, dict):
            continue
        for key in ("text", "spelling", "code"):
            if node.get(key):
                value = node[key]
                parts.append("\n".join(map(str, value)) if isinstance(value, list) else str(value))
        for key in ("children", "inlineContent", "content"):
            if node.get(key):
                parts.append(flatten_inline(node[key]))
    return collapse_whitespace(" ".join(parts))


def doc_url_to_web(url: str | None) -> str | None:
    """Map a ``doc://<bundle>/documentation/<path>`` URI to its web page."""
    if not url:
        return None
    if url.startswith("https://"):
        return url
    match = _DOC_URI_RE.match(url)
    if match:
        return f"{DOCS_BASE_URL}/documentation/{match.group(1)}"
    if url.startswith("documentation/"):
        return f"{DOCS_BASE_URL}/{url}"
    if url.startswith("/documentation/"):
        return f"{DOCS_BASE_URL}{url}"
    return None


def _join_tokens(tokens: Any) -> str | None:
    if not isinstance(tokens, list) or not tokens:
        return None
    joined = "".join(
        str(token.get("spelling") or token.get("text") or "")
        for token in tokens
        if isinstance(token, dict)
    )
    return joined.strip() or None


def _sections_of_kind(data: Any, kind: str) -> Iterable[dict]:
    sections = _get(data, "primaryContentSections")
    if not isinstance(sections, list):
        return []
    return [
        section
        for section in sections
        if isinstance(section, dict) and kind in (section.get("kind"), section.get("type"))
    ]


def _declaration_section_snippet(data: Any) -> str | None:
    for section in _sections_of_kind(data, "declarations"):
        declarations = section.get("declarations")
        if isinstance(declarations, list) and declarations:
            snippet = _join_tokens(_get(declarations[0], "tokens"))
            if snippet:
                return snippet
    return None


def _code_listing_snippet(data: Any) -> str | None:
    for section in _sections_of_kind(data, "codeListing"):
        code = section.get("code")
        if isinstance(code, list):
            code = "\n".join(map(str, code))
        if code and str(code).strip():
            return str(code).strip()
    return None


def _variant_snippet(data: Any) -> str | None:
    variants = _get(data, "variants")
    if not isinstance(variants, list):
        return None
    for variant in variants:
        snippet = extract_snippet(variant)
        if snippet:
            return snippet
    return None


def extract_title(data: Any) -> str | None:
    return _first(
        [
            lambda: _text(_get(data, "title")),
            lambda: _text(_get(data, "metadata", "title")),
            lambda: _text(_get(data, "identifier", "title")),
        ]
    )


def extract_summary(data: Any) -> str | None:
    return _first(
        [
            lambda: flatten_inline(_get(data, "abstract")),
            lambda: flatten_inline(_get(data, "description")),
            lambda: flatten_inline(_get(data, "overview")),
        ]
    )


def extract_snippet(data: Any) -> str | None:
    return _first(
        [
            lambda: _join_tokens(_get(data, "declarationFragments")),
            lambda: _declaration_section_snippet(data),
            lambda: _code_listing_snippet(data),
            lambda: _variant_snippet(data),
        ]
    )


def url_from_references(data: Any, title: str | None) -> str | None:
    """Prefer the reference titled like the symbol, else any documentation URL."""
    refs = _get(data, "references")
    if not isinstance(refs, dict):
        return None
    values = [ref for ref in refs.values() if isinstance(ref, dict)]
    wanted = (title or "").lower()
    for ref in values:
        if ref.get("url") and str(ref.get("title") or "").lower() == wanted:
            return doc_url_to_web(str(ref["url"]))
    for ref in values:
        url = ref.get("url")
        if url and _DOCUMENTATION_RE.search(str(url)):
            return doc_url_to_web(str(url))
    return None


def extract_url(data: Any, title: str | None) -> str | None:
    return _first(
        [
            lambda: doc_url_to_web(_text(_get(data, "identifier", "url"))),
            lambda: url_from_references(data, title),
            lambda: _text(_get(data, "url")),
            lambda: _text(_get(data, "referenceURL")),
        ]
    )


def extract_framework(data: Any) -> str | None:
    return _first(
        [
            lambda: _text(_get(data, "metadata", "module", "name")),
            lambda: _text(_get(data, "module", "name")),
            lambda: _text(_get(_first_item(_get(data, "metadata", "modules")), "name")),
        ]
    )


def extract_kind(data: Any) -> str | None:
    return _first(
        [
            lambda: _text(_get(data, "symbolKind")),
            lambda: _text(_get(data, "kind")),
            lambda: _text(_get(data, "metadata", "role")),
        ]
    )


def extract_topics(data: Any) -> tuple[str, ...]:
    titles: List[Any] = []
    for key in ("topicSections", "sections"):
        sections = _get(data, key)
        if isinstance(sections, list):
            titles.extend(_get(section, "title") for section in sections)
    return unique_labels(titles)


def _framework_from_path(path: Path, root: Path) -> str | None:
    parts = Path(relative_key(path, root)).parts
    return parts[0] if len(parts) > 1 else None


def _record(
    *,
    symbol: str,
    framework: str | None,
    local_id: str | None,
    path: Path,
    root: Path,
    **values: Any,
) -> NormalizedRecord:
    identity = local_id or symbol or relative_key(path, root)
    return NormalizedRecord(
        record_id=make_record_id("apple-symbol", framework, identity),
        source="apple-symbol",
        display_name=symbol,
        group_name=framework,
        local_id=local_id,
        source_path=str(path),
        **values,
    )


def parse_symbol_document(data: Any, path: Path, root: Path) -> NormalizedRecord | None:
    """Build a record from one parsed DocC JSON document."""
    if not isinstance(data, dict):
        return None
    title = extract_title(data) or path.stem
    return _record(
        symbol=title,
        framework=extract_framework(data) or _framework_from_path(path, root),
        local_id=_first(
            [
                lambda: _text(_get(data, "identifier", "url")),
                lambda: _text(_get(data, "identifier", "identifier")),
            ]
        ),
        path=path,
        root=root,
        category=extract_kind(data),
        topics=extract_topics(data),
        summary=bounded(extract_summary(data), SUMMARY_LIMIT),
        code_snippet=extract_snippet(data),
        external_url=extract_url(data, title),
    )


def _parse_markdown(content: str, path: Path, root: Path) -> NormalizedRecord:
    match = _FENCE_RE.search(content)
    snippet = match.group(1).strip() if match else None
    prose = _FENCE_RE.sub(" ", content)
    return _record(
        symbol=path.stem,
        framework=_framework_from_path(path, root),
        local_id=None,
        path=path,
        root=root,
        summary=bounded(collapse_whitespace(prose), SUMMARY_LIMIT),
        code_snippet=snippet or None,
    )


def _parse_html(content: str, path: Path, root: Path) -> NormalizedRecord:
    page = parse_html_page(content)
    return _record(
        symbol=page.title or path.stem,
        framework=_framework_from_path(path, root),
        local_id=None,
        path=path,
        root=root,
        summary=bounded(page.text, SUMMARY_LIMIT),
        external_url=page.url,
    )


def parse_symbol_file(path: Path, root: Path) -> NormalizedRecord | None:
    """Parse one file under the symbol docs root; ``None`` when unusable."""
    suffix = path.suffix.lower()
    try:
        content = read_text(path)
        if suffix == ".json":
            return parse_symbol_document(json.loads(content), path, root)
        if suffix in (".md", ".markdown"):
            return _parse_markdown(content, path, root)
        if suffix == ".html":
            return _parse_html(content, path, root)
    except (
        OSError,
        UnicodeDecodeError,
        ValueError,
        TypeError,
        AttributeError,
        RecursionError,
    ) as exc:
        LOGGER.debug("Skipping symbol document %s: %s", path, exc)
    return None
