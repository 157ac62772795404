"""Tests for hybrid search, filtering, ranking and facets."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from conftest import HIG_PAGE, write

from swiftdocs.config import AppConfig
from swiftdocs.index.indexer import IndexBuilder
from swiftdocs.index.search import (
    FACET_NAMES,
    Searcher,
    SearchRequest,
    compute_facets,
    dedupe_hits,
    hybrid_search,
    matches_filters,
    rank_hits,
)
from swiftdocs.index.storage import IndexStore
from swiftdocs.models import NormalizedRecord, SearchHit


def _hit(record_id: str, score: float, name: str | None = None, **values) -> SearchHit:
    return SearchHit(record=NormalizedRecord(record_id=record_id, source="pattern", display_name=name, **values), score=score)


@pytest.fixture
def searcher(corpus: AppConfig) -> Searcher:
    return Searcher(corpus)


class TestHelpers:
    """Test the pure ranking helpers."""

    def test_matches_filters_case_insensitive(self) -> None:
        record = NormalizedRecord(record_id="x", source="apple-symbol", group_name="SwiftUI", topics=("Layout",))

        assert matches_filters(record, SearchRequest(query="q", frameworks=["swiftui"]))
        assert matches_filters(record, SearchRequest(query="q", topics=["layout", "other"]))
        assert not matches_filters(record, SearchRequest(query="q", frameworks=["AppKit"]))
        assert not matches_filters(record, SearchRequest(query="q", sources=["pattern"]))

    def test_source_filter_case_insensitive(self) -> None:
        record = NormalizedRecord(record_id="x", source="hig-page")

        assert matches_filters(record, SearchRequest(query="q", sources=["HIG-Page"]))
        assert not matches_filters(record, SearchRequest(query="q", sources=["Pattern"]))

    def test_missing_topics_excluded_by_topic_filter(self) -> None:
        record = NormalizedRecord(record_id="x", source="pattern")
        assert not matches_filters(record, SearchRequest(query="q", topics=["Layout"]))

    def test_dedupe_keeps_first(self) -> None:
        hits = [_hit("a", 2.0), _hit("a", 1.0), _hit("b", 0.5)]
        assert [hit.score for hit in dedupe_hits(hits)] == [2.0, 0.5]

    def test_exact_title_ranked_first(self) -> None:
        hits = [_hit("a", 9.0, "Views"), _hit("b", 1.0, "View")]
        assert [hit.record.record_id for hit in rank_hits(hits, "view")] == ["b", "a"]

    def test_rank_is_stable_for_ties(self) -> None:
        hits = [_hit("b", 1.0, "x"), _hit("a", 1.0, "y")]
        assert [hit.record.record_id for hit in rank_hits(hits, "q")] == ["b", "a"]

    def test_facets_sorted_and_counted(self) -> None:
        hits = [_hit("a", 1.0, tags=("b", "a")), _hit("b", 1.0, tags=("a",))]
        facets = compute_facets(hits)

        assert [(item.value, item.count) for item in facets["tags"]] == [("a", 2), ("b", 1)]
        assert [(item.value, item.count) for item in facets["sources"]] == [("pattern", 2)]


class TestSearcher:
    """Test Searcher against the on-disk corpus."""

    def test_builds_in_memory_without_persisting(self, searcher: Searcher, corpus: AppConfig) -> None:
        response = searcher.search(SearchRequest(query="window"))

        assert response.results
        assert not IndexStore(corpus.index_dir).path_for("hybrid").exists()

    def test_uses_persisted_index(self, corpus: AppConfig) -> None:
        IndexBuilder(corpus, IndexStore(corpus.index_dir)).rebuild()
        searcher = Searcher(corpus)

        with patch("swiftdocs.index.search.build_unified_index") as build:
            response = searcher.search(SearchRequest(query="window"))

        build.assert_not_called()
        assert response.results

    def test_empty_corpus(self, config: AppConfig) -> None:
        response = Searcher(config).search(SearchRequest(query="window"))

        assert response.results == []
        assert response.facets == {name: [] for name in FACET_NAMES}

    def test_empty_query(self, corpus: AppConfig) -> None:
        """A blank query returns no results without loading or building an index."""
        with patch("swiftdocs.index.search.build_unified_index") as build:
            response = Searcher(corpus).search(SearchRequest(query=""))

        build.assert_not_called()
        assert response.results == []
        assert response.facets == {name: [] for name in FACET_NAMES}

    def test_results_respect_limit(self, searcher: Searcher) -> None:
        for limit in (0, 1, 3):
            assert len(searcher.search(SearchRequest(query="window protocol", limit=limit)).results) <= limit

    def test_negative_limit(self, searcher: Searcher) -> None:
        assert searcher.search(SearchRequest(query="window", limit=-5)).results == []

    def test_source_filter(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="window", sources=["hig-page"]))

        assert response.results
        assert all(hit.record.source == "hig-page" for hit in response.results)

    def test_topic_filter(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="window view", topics=["Layout"]))

        assert {hit.record.display_name for hit in response.results} == {"View", "NSWindow"}

    def test_facet_counts_match_results(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="window protocol"))

        assert sum(item.count for item in response.facets["sources"]) == len(response.results)

    def test_results_unique(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="window protocol panel"))
        ids = [hit.record.record_id for hit in response.results]

        assert len(ids) == len(set(ids))

    def test_exact_symbol_first(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="View"))
        assert response.results[0].record.display_name == "View"

    def test_to_dict(self, searcher: Searcher) -> None:
        data = searcher.search(SearchRequest(query="window", limit=2)).to_dict()

        assert set(data) == {"results", "facets"}
        assert set(data["facets"]) == set(FACET_NAMES)
        assert "score" in data["results"][0]

    def test_rebuild_swaps_index(self, config: AppConfig) -> None:
        searcher = Searcher(config)
        assert searcher.search(SearchRequest(query="window")).results == []

        write(config.guidelines_dir / "windows.html", HIG_PAGE)
        built = searcher.rebuild()

        assert built is not None and built.count == 1
        assert IndexStore(config.index_dir).path_for("hybrid").exists()
        assert [hit.record.display_name for hit in searcher.search(SearchRequest(query="window")).results] == [
            "Windows"
        ]

    def test_rebuild_all_swaps_index(self, corpus: AppConfig) -> None:
        searcher = Searcher(corpus)
        assert searcher.search(SearchRequest(query="sheets", sources=["hig-page"])).results == []

        write(corpus.guidelines_dir / "sheets.html", "<html><head><title>Sheets</title></head><body>Modal sheets</body></html>")
        stats = searcher.rebuild_all()

        assert stats.built["hybrid"] == 9
        assert searcher.index is not None and len(searcher.index) == 9
        response = searcher.search(SearchRequest(query="sheets", sources=["hig-page"]))
        assert [hit.record.display_name for hit in response.results] == ["Sheets"]

    def test_persisted_ranking_matches_in_memory(self, corpus: AppConfig) -> None:
        in_memory = Searcher(corpus).search(SearchRequest(query="window protocol"))
        IndexBuilder(corpus, IndexStore(corpus.index_dir)).rebuild()
        persisted = Searcher(corpus).search(SearchRequest(query="window protocol"))

        assert [hit.record.record_id for hit in persisted.results] == [hit.record.record_id for hit in in_memory.results]


class TestScenarios:
    """End-to-end search scenarios."""

    def test_chapter_found_by_body_word(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="protocol", sources=["book-chapter"]))
        assert "Protocols" in {hit.record.display_name for hit in response.results}

    def test_nonsense_query(self, searcher: Searcher) -> None:
        response = searcher.search(SearchRequest(query="xyznonexistent123"))

        assert response.results == []
        assert all(values == [] for values in response.facets.values())

    def test_limit_one_returns_top_hit(self, searcher: Searcher) -> None:
        full = searcher.search(SearchRequest(query="window protocol", limit=50)).results
        assert len(full) >= 5

        (top,) = searcher.search(SearchRequest(query="window protocol", limit=1)).results
        assert top.record.record_id == full[0].record.record_id

    def test_hybrid_search_helper(self, corpus: AppConfig) -> None:
        response = hybrid_search(corpus, "panel", sources=["recipe"])
        assert [hit.record.display_name for hit in response.results] == ["Floating Panel"]
