"""Tests for core data models."""

from __future__ import annotations

import pytest

from swiftdocs.models import NormalizedRecord, Proposal, SearchHit, make_record_id, unique_labels


class TestMakeRecordId:
    """Test the shared record-id shape."""

    def test_lowercases_group_and_identity(self) -> None:
        assert make_record_id("apple-symbol", "SwiftUI", "View") == "apple-symbol|swiftui|view"

    def test_missing_group(self) -> None:
        """A missing group leaves an empty middle segment."""
        assert make_record_id("pattern", None, "key-handling") == "pattern||key-handling"


class TestUniqueLabels:
    """Test label normalization."""

    def test_strips_and_deduplicates(self) -> None:
        assert unique_labels([" keyboard", "keyboard", "appkit", "", None]) == ("keyboard", "appkit")

    def test_single_string(self) -> None:
        assert unique_labels("swiftui") == ("swiftui",)

    def test_none(self) -> None:
        assert unique_labels(None) == ()


class TestNormalizedRecord:
    """Test NormalizedRecord conversion."""

    def test_to_dict_uses_lists(self) -> None:
        record = NormalizedRecord(record_id="pattern||a", source="pattern", tags=("x", "y"))
        data = record.to_dict()

        assert data["tags"] == ["x", "y"]
        assert data["display_name"] is None

    def test_round_trip(self) -> None:
        record = NormalizedRecord(
            record_id="recipe||floating-panel",
            source="recipe",
            display_name="Floating Panel",
            tags=("appkit",),
            steps=("Create", "Show"),
        )
        assert NormalizedRecord.from_dict(record.to_dict()) == record

    def test_from_dict_ignores_unknown_keys(self) -> None:
        record = NormalizedRecord.from_dict({"record_id": "hig-page||a", "source": "hig-page", "score": 1.5})
        assert record.record_id == "hig-page||a"

    def test_from_dict_keeps_repeated_steps(self) -> None:
        """Steps are ordered instructions, so repeats survive."""
        record = NormalizedRecord.from_dict(
            {"record_id": "recipe||r", "source": "recipe", "steps": ["Build", "Test", "Build"]}
        )
        assert record.steps == ("Build", "Test", "Build")

    def test_frozen(self) -> None:
        record = NormalizedRecord(record_id="pattern||a", source="pattern")
        with pytest.raises(AttributeError):
            record.display_name = "changed"  # type: ignore[misc]


class TestProposal:
    """Test Proposal dataclass."""

    def test_to_dict(self) -> None:
        proposal = Proposal(id="SE-0001", title="Keywords", status="Implemented", path="/p.md")
        assert proposal.to_dict() == {"id": "SE-0001", "title": "Keywords", "status": "Implemented", "path": "/p.md"}


class TestSearchHit:
    """Test SearchHit serialization."""

    def test_to_dict_adds_score(self) -> None:
        hit = SearchHit(record=NormalizedRecord(record_id="pattern||a", source="pattern"), score=2.5)
        data = hit.to_dict()

        assert data["score"] == 2.5
        assert data["record_id"] == "pattern||a"
