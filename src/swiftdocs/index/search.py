"""Hybrid search over the unified index: filtering, dedup, ranking and facets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from swiftdocs.config import AppConfig
from swiftdocs.index.engine import SearchIndex
from swiftdocs.index.indexer import BuildStats, BuiltIndex, IndexBuilder, build_unified_index
from swiftdocs.index.storage import UNIFIED_INDEX, IndexStore
from swiftdocs.models import FacetCount, NormalizedRecord, SearchHit

LOGGER = logging.getLogger(__name__)

FACET_NAMES = ("sources", "frameworks", "kinds", "topics", "tags")


@dataclass(slots=True)
class SearchRequest:
    query: str
    sources: Sequence[str] | None = None
    frameworks: Sequence[str] | None = None
    kinds: Sequence[str] | None = None
    topics: Sequence[str] | None = None
    tags: Sequence[str] | None = None
    limit: int | None = None


@dataclass(slots=True)
class SearchResponse:
    results: List[SearchHit] = field(default_factory=list)
    facets: Dict[str, List[FacetCount]] = field(
        default_factory=lambda: {name: [] for name in FACET_NAMES}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [hit.to_dict() for hit in self.results],
            "facets": {
                name: [{"value": item.value, "count": item.count} for item in values]
                for name, values in self.facets.items()
            },
        }


def _lowered(values: Iterable[str] | None) -> set[str]:
    return {value.lower() for value in values or () if value}


def _facet_values(record: NormalizedRecord, name: str) -> List[str]:
    if name == "sources":
        values: Iterable[str | None] = [record.source]
    elif name == "frameworks":
        values = [record.group_name]
    elif name == "kinds":
        values = [record.category]
    elif name == "topics":
        values = record.topics
    else:
        values = record.tags
    return list(dict.fromkeys(value for value in values if value))


def matches_filters(record: NormalizedRecord, request: SearchRequest) -> bool:
    """AND across facets, OR within each facet; comparisons ignore case."""
    sources = _lowered(request.sources)
    if sources and record.source.lower() not in sources:
        return False
    for name, allowed in (
        ("frameworks", request.frameworks),
        ("kinds", request.kinds),
        ("topics", request.topics),
        ("tags", request.tags),
    ):
        wanted = _lowered(allowed)
        if wanted and not wanted.intersection(value.lower() for value in _facet_values(record, name)):
            return False
    return True


def dedupe_hits(hits: Iterable[SearchHit]) -> List[SearchHit]:
    """First hit per record id (or per source + lower-cased title) wins."""
    seen: set[str] = set()
    unique: List[SearchHit] = []
    for hit in hits:
        record = hit.record
        key = record.record_id or f"{record.source}|{(record.display_name or '').lower()}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(hit)
    return unique


def rank_hits(hits: Sequence[SearchHit], query: str) -> List[SearchHit]:
    """Exact title/symbol matches first, then by score; stable for ties."""
    wanted = query.strip().lower()

    def key(hit: SearchHit) -> tuple[int, float]:
        exact = (hit.record.display_name or "").lower() == wanted
        return (0 if exact else 1, -hit.score)

    return sorted(hits, key=key)


def compute_facets(hits: Sequence[SearchHit]) -> Dict[str, List[FacetCount]]:
    facets: Dict[str, List[FacetCount]] = {}
    for name in FACET_NAMES:
        counts: Dict[str, int] = {}
        for hit in hits:
            for value in _facet_values(hit.record, name):
                counts[value] = counts.get(value, 0) + 1
        facets[name] = [FacetCount(value=value, count=counts[value]) for value in sorted(counts)]
    return facets


class Searcher:
    """High-level API over the unified index, loading or building it on demand."""

    def __init__(
        self,
        config: AppConfig,
        store: IndexStore | None = None,
        *,
        index: SearchIndex | None = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else IndexStore(config.index_dir)
        self._index = index

    @property
    def index(self) -> SearchIndex | None:
        if self._index is None:
            index = self.store.load(UNIFIED_INDEX)
            if index is None:
                LOGGER.info("No persisted %s index, building in memory", UNIFIED_INDEX)
                built = build_unified_index(self.config)
                index = built.index if built is not None else None
            self._index = index
        return self._index

    def rebuild(self) -> BuiltIndex | None:
        """Build a fresh unified index, persist it, then swap it in."""
        built = build_unified_index(self.config)
        if built is None:
            return None
        self.store.save(UNIFIED_INDEX, built.index)
        self._index = built.index
        return built

    def rebuild_all(self) -> BuildStats:
        """Rebuild and persist every index, then swap in the new unified one."""
        builder = IndexBuilder(self.config, self.store)
        stats = builder.rebuild()
        self._index = builder.unified
        return stats

    def search(self, request: SearchRequest) -> SearchResponse:
        limit = self.config.default_limit if request.limit is None else max(request.limit, 0)
        if not request.query.strip():
            return SearchResponse()
        index = self.index
        if index is None:
            return SearchResponse()

        hits = [
            SearchHit(record=NormalizedRecord.from_dict(match.document), score=match.score, terms=match.terms)
            for match in index.search(request.query)
        ]
        hits = [hit for hit in hits if matches_filters(hit.record, request)]
        results = rank_hits(dedupe_hits(hits), request.query)[:limit]
        return SearchResponse(results=results, facets=compute_facets(results))


def hybrid_search(config: AppConfig, query: str, **filters: Any) -> SearchResponse:
    return Searcher(config).search(SearchRequest(query=query, **filters))
