"""Tests for the in-memory search index."""

from __future__ import annotations

import pytest

from swiftdocs.index.engine import DuplicateDocumentError, SearchIndex, tokenize


def _index(**kwargs) -> SearchIndex:
    return SearchIndex(("title", "summary"), store_fields=("record_id", "title"), **kwargs)


class TestTokenize:
    """Test tokenize function."""

    def test_lowercases_and_splits(self) -> None:
        assert tokenize("NSWindow.identifier, snake_case 42") == ["nswindow", "identifier", "snake", "case", "42"]

    def test_empty(self) -> None:
        assert tokenize("  ...  ") == []


class TestAdd:
    """Test document insertion."""

    def test_add_and_get(self) -> None:
        index = _index()
        index.add({"record_id": "a", "title": "Window", "summary": "Shows content", "extra": "dropped"})

        assert len(index) == 1
        assert "a" in index
        assert index.get("a") == {"record_id": "a", "title": "Window"}

    def test_duplicate_rejected(self) -> None:
        index = _index()
        index.add({"record_id": "a", "title": "Window"})

        with pytest.raises(DuplicateDocumentError):
            index.add({"record_id": "a", "title": "Panel"})
        assert len(index) == 1

    def test_missing_id(self) -> None:
        with pytest.raises(ValueError):
            _index().add({"title": "No id"})

    def test_requires_fields(self) -> None:
        with pytest.raises(ValueError):
            SearchIndex(())


class TestSearch:
    """Test matching and scoring."""

    def test_exact_beats_prefix(self) -> None:
        index = _index()
        index.add_all([{"record_id": "long", "title": "keyboard"}, {"record_id": "short", "title": "key"}])

        results = index.search("key")

        assert [match.id for match in results] == ["short", "long"]
        assert results[0].score > results[1].score

    def test_prefix_disabled(self) -> None:
        index = _index(prefix=False)
        index.add({"record_id": "long", "title": "keyboard"})

        assert index.search("key") == []

    def test_fuzzy_match(self) -> None:
        """A single typo still matches a long enough term."""
        index = _index()
        index.add({"record_id": "p", "title": "protocol"})

        results = index.search("protocl")

        assert [match.id for match in results] == ["p"]
        assert results[0].terms == ["protocol"]

    def test_fuzzy_disabled(self) -> None:
        index = _index(fuzzy=0)
        index.add({"record_id": "p", "title": "protocol"})

        assert index.search("protocl") == []

    def test_field_boost(self) -> None:
        index = _index(boost={"title": 3})
        index.add_all(
            [
                {"record_id": "b", "title": "panel", "summary": "window"},
                {"record_id": "a", "title": "window", "summary": "other"},
            ]
        )

        assert [match.id for match in index.search("window")] == ["a", "b"]

    def test_any_token_matches(self) -> None:
        index = _index()
        index.add_all([{"record_id": "a", "title": "window"}, {"record_id": "b", "title": "panel"}])

        assert {match.id for match in index.search("window panel")} == {"a", "b"}

    def test_ties_broken_by_id(self) -> None:
        index = _index()
        index.add_all([{"record_id": "b", "title": "same"}, {"record_id": "a", "title": "same"}])

        assert [match.id for match in index.search("same")] == ["a", "b"]

    def test_list_fields(self) -> None:
        index = SearchIndex(("tags",), store_fields=("record_id",))
        index.add({"record_id": "a", "tags": ["keyboard", "appkit"]})

        assert [match.id for match in index.search("appkit")] == ["a"]

    def test_empty_query_and_index(self) -> None:
        index = _index()
        assert index.search("anything") == []

        index.add({"record_id": "a", "title": "window"})
        assert index.search("   ") == []

    def test_max_distance(self) -> None:
        index = _index()

        assert index.max_distance("key") == 0
        assert index.max_distance("keyboard") == 1
        assert index.max_distance("x" * 100) == 6
        assert index.max_distance("keyboard", fuzzy=2) == 2


class TestSerialization:
    """Test to_dict / from_dict."""

    def test_round_trip_preserves_results(self) -> None:
        index = _index(boost={"title": 2})
        index.add_all(
            [
                {"record_id": "a", "title": "Window", "summary": "A window shows content"},
                {"record_id": "b", "title": "Panel", "summary": "A floating window"},
                {"record_id": "c", "title": "Menu", "summary": "Commands"},
            ]
        )

        restored = SearchIndex.from_dict(index.to_dict())

        original = [(match.id, match.score) for match in index.search("window")]
        again = [(match.id, match.score) for match in restored.search("window")]
        assert again == original
        assert restored.get("a") == index.get("a")
        assert restored.boost == {"title": 2}

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            SearchIndex.from_dict({"format": "other", "version": 1})

    def test_rejects_inconsistent_data(self) -> None:
        data = _index().to_dict()
        data["field_lengths"] = {"ghost": {"title": 1}}

        with pytest.raises(ValueError):
            SearchIndex.from_dict(data)
