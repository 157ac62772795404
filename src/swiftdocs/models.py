"""Core swiftdocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, Literal, Tuple

Source = Literal["apple-symbol", "hig-page", "pattern", "recipe", "book-chapter"]

SOURCES: Tuple[Source, ...] = ("apple-symbol", "hig-page", "pattern", "recipe", "book-chapter")

_LABEL_FIELDS = ("topics", "tags", "takeaways", "prerequisites", "references")


def make_record_id(source: str, group: str | None, local: str) -> str:
    """Build the ``source|group|identity`` key shared by builders and dedup."""
    return f"{source}|{(group or '').lower()}|{local.lower()}"


def unique_labels(values: Iterable[Any] | None) -> Tuple[str, ...]:
    """Stringify, strip and deduplicate labels, keeping first-seen order."""
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    seen: dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text:
            seen.setdefault(text, None)
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """One searchable content unit, whatever source it came from."""

    record_id: str
    source: Source
    display_name: str | None = None
    group_name: str | None = None
    category: str | None = None
    topics: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    summary: str | None = None
    code_snippet: str | None = None
    external_url: str | None = None
    source_path: str | None = None
    local_id: str | None = None
    takeaways: Tuple[str, ...] = ()
    steps: Tuple[str, ...] = ()
    prerequisites: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            data[item.name] = list(value) if isinstance(value, tuple) else value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizedRecord":
        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        for name in _LABEL_FIELDS:
            if name in values:
                values[name] = unique_labels(values[name])
        if "steps" in values:
            values["steps"] = tuple(str(step) for step in values["steps"] or ())
        return cls(**values)


@dataclass(slots=True)
class Proposal:
    """Swift Evolution proposal summary."""

    id: str
    title: str
    status: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title, "status": self.status, "path": self.path}


@dataclass(slots=True)
class FacetCount:
    value: str
    count: int


@dataclass(slots=True)
class SearchHit:
    """Record returned by a search, with the engine's relevance score."""

    record: NormalizedRecord
    score: float
    terms: list[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        data["score"] = self.score
        return data
