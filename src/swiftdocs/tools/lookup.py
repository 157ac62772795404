"""Per-source lookups built on the persisted (or freshly built) source indexes."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Sequence

from swiftdocs.config import AppConfig
from swiftdocs.index.engine import SearchIndex
from swiftdocs.index.indexer import (
    BOOK_PROFILE,
    GUIDELINE_PROFILE,
    PATTERN_PROFILE,
    RECIPE_PROFILE,
    SYMBOL_PROFILE,
    BuiltIndex,
    build_book_index,
    build_guideline_index,
    build_pattern_index,
    build_recipe_index,
    build_symbol_index,
)
from swiftdocs.index.storage import IndexStore
from swiftdocs.ingestion.proposals import ProposalDocument, parse_proposal_file
from swiftdocs.models import NormalizedRecord, Proposal
from swiftdocs.utils.files import MARKDOWN_SUFFIXES, iter_content_paths, read_text, read_yaml_documents
from swiftdocs.utils.text import excerpt_around, strip_html

LOGGER = logging.getLogger(__name__)

_PROPOSAL_ID_RE = re.compile(r"^(?:SE[-\s]?)?(\d{4})$", re.IGNORECASE)
_SYMBOL_NOISE_RE = re.compile(r"\(.*?\)|:|\s+")


def load_or_build(
    config: AppConfig, name: str, builder: Callable[[AppConfig], BuiltIndex | None]
) -> SearchIndex | None:
    """Persisted index ``name`` when usable, else one built in memory."""
    index = IndexStore(config.index_dir).load(name)
    if index is not None:
        return index
    built = builder(config)
    return built.index if built is not None else None


def _records(index: SearchIndex | None, query: str) -> List[NormalizedRecord]:
    if index is None:
        return []
    return [NormalizedRecord.from_dict(match.document) for match in index.search(query)]


def _all_records(index: SearchIndex | None) -> List[NormalizedRecord]:
    if index is None:
        return []
    return [NormalizedRecord.from_dict(index.get(doc_id) or {}) for doc_id in index.ids()]


def _merge(*groups: Sequence[NormalizedRecord], limit: int) -> List[NormalizedRecord]:
    merged: Dict[str, NormalizedRecord] = {}
    for group in groups:
        for record in group:
            merged.setdefault(record.record_id, record)
    return list(merged.values())[: max(limit, 0)]


# Evolution proposals


def load_proposals(config: AppConfig) -> List[ProposalDocument]:
    root = config.proposals_dir
    if not root.is_dir():
        return []
    parsed = (parse_proposal_file(path) for path in iter_content_paths([root], (".md",)))
    return [document for document in parsed if document is not None]


def evolution_lookup(config: AppConfig, query: str, limit: int = 5) -> List[Proposal]:
    """Exact ``SE-NNNN`` / ``NNNN`` id lookup, else keyword search over proposals."""
    documents = load_proposals(config)
    if not documents:
        return []

    id_match = _PROPOSAL_ID_RE.match(query.strip())
    if id_match:
        wanted = f"SE-{id_match.group(1)}"
        exact = [document.proposal for document in documents if document.proposal.id == wanted]
        if exact:
            return exact[: max(limit, 0)]

    index = SearchIndex(
        ("id", "title", "body"),
        store_fields=("id", "title", "status", "path"),
        boost={"id": 5, "title": 3},
        fuzzy=config.fuzzy,
        id_field="path",
    )
    index.add_all({**document.proposal.to_dict(), "body": document.body} for document in documents)
    return [
        Proposal(**{key: match.document[key] for key in ("id", "title", "status", "path")})
        for match in index.search(query)[: max(limit, 0)]
    ]


# Patterns and recipes


def patterns_search(config: AppConfig, query_or_tag: str, limit: int = 5) -> List[NormalizedRecord]:
    """Patterns tagged exactly ``query_or_tag`` first, then full-text matches."""
    index = load_or_build(config, PATTERN_PROFILE.name, build_pattern_index)
    wanted = query_or_tag.strip().lower()
    tagged = [
        record
        for record in _all_records(index)
        if wanted and wanted in (tag.lower() for tag in record.tags)
    ]
    return _merge(tagged, _records(index, query_or_tag), limit=limit)


def recipe_lookup(config: AppConfig, query_or_id: str, limit: int = 5) -> List[NormalizedRecord]:
    """Recipe with id ``query_or_id`` first, then full-text matches."""
    index = load_or_build(config, RECIPE_PROFILE.name, build_recipe_index)
    wanted = query_or_id.strip().lower()
    exact = [record for record in _all_records(index) if (record.local_id or "").lower() == wanted]
    return _merge(exact, _records(index, query_or_id), limit=limit)


# Guideline pages and symbol docs


def guideline_search(config: AppConfig, query: str, limit: int = 5) -> List[NormalizedRecord]:
    index = load_or_build(config, GUIDELINE_PROFILE.name, build_guideline_index)
    return _records(index, query)[: max(limit, 0)]


def normalize_symbol(symbol: str) -> str:
    """Drop parameter lists, colons and whitespace: ``foo(bar:)`` -> ``foo``."""
    return _SYMBOL_NOISE_RE.sub("", symbol).lower()


def symbol_docs_search(
    config: AppConfig,
    query: str,
    frameworks: Sequence[str] | None = None,
    limit: int = 5,
) -> List[NormalizedRecord]:
    """Symbol docs hits, exact (normalized) symbol matches first."""
    index = load_or_build(config, SYMBOL_PROFILE.name, build_symbol_index)
    records = _records(index, query)
    if frameworks:
        allowed = {framework.lower() for framework in frameworks}
        records = [record for record in records if (record.group_name or "").lower() in allowed]
    wanted = normalize_symbol(query)
    records.sort(key=lambda record: normalize_symbol(record.display_name or "") != wanted)
    return records[: max(limit, 0)]


def load_symbol_aliases(config: AppConfig) -> Dict[str, List[str]]:
    """Canonical symbol -> aliases, from the first aliases file that parses."""
    for path in config.resolve_aliases_files():
        if not path.is_file():
            continue
        for document in read_yaml_documents(path):
            if isinstance(document, dict):
                return {
                    str(canonical): [str(alias) for alias in aliases or []]
                    for canonical, aliases in document.items()
                    if isinstance(aliases, (list, type(None)))
                }
    return {}


def symbol_lookup(config: AppConfig, symbol: str, limit: int = 10) -> List[NormalizedRecord]:
    """Resolve aliases to canonical names, then search each of them."""
    wanted = symbol.strip()
    aliases = load_symbol_aliases(config)
    canonicals = [name for name, names in aliases.items() if name == wanted or wanted in names]
    results: List[NormalizedRecord] = []
    for name in canonicals or [wanted]:
        results.extend(symbol_docs_search(config, name, limit=5))

    seen: set[str] = set()
    unique: List[NormalizedRecord] = []
    for record in results:
        key = f"{record.group_name}|{record.display_name}"
        if key not in seen:
            seen.add(key)
            unique.append(record)
    return unique[: max(limit, 0)]


# Plain-text documentation search


def docs_search(config: AppConfig, query: str, limit: int = 5) -> List[Dict[str, Any]]:
    """Text excerpts from the API Design Guidelines page and the book."""
    results: List[Dict[str, Any]] = []
    page = config.api_guidelines_page
    if page.is_file():
        try:
            excerpt = excerpt_around(strip_html(read_text(page)), query)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.debug("Skipping %s: %s", page, exc)
            excerpt = None
        if excerpt:
            results.append({"source": "API Design Guidelines", "path": str(page), "excerpt": excerpt})

    book_root = config.book_dir.parent
    for path in iter_content_paths([book_root], MARKDOWN_SUFFIXES) if book_root.is_dir() else []:
        if len(results) >= limit:
            break
        try:
            excerpt = excerpt_around(read_text(path), query)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.debug("Skipping %s: %s", path, exc)
            continue
        if excerpt:
            results.append({"source": "TSPL", "path": str(path), "excerpt": excerpt})
    return results[: max(limit, 0)]


def book_search(config: AppConfig, query: str, limit: int = 5) -> List[NormalizedRecord]:
    index = load_or_build(config, BOOK_PROFILE.name, build_book_index)
    return _records(index, query)[: max(limit, 0)]


def index_status(config: AppConfig) -> Dict[str, Any]:
    status = IndexStore(config.index_dir).status()
    status["cache_dir"] = str(config.cache_dir)
    return status
