"""Index building: per-source indexes and the unified cross-source index."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping

from swiftdocs.config import AppConfig
from swiftdocs.index.engine import SearchIndex
from swiftdocs.index.storage import IndexStore
from swiftdocs.ingestion.book import parse_chapter_file
from swiftdocs.ingestion.catalog import CatalogKind, parse_catalog_file
from swiftdocs.ingestion.guidelines import GUIDELINE_SUFFIXES, parse_guideline_file
from swiftdocs.ingestion.symbols import SYMBOL_SUFFIXES, parse_symbol_file
from swiftdocs.models import NormalizedRecord
from swiftdocs.utils.files import MARKDOWN_SUFFIXES, YAML_SUFFIXES, existing_dirs, iter_content_paths

LOGGER = logging.getLogger(__name__)

RECORD_FIELDS = tuple(item.name for item in fields(NormalizedRecord))


def record_document(record: NormalizedRecord) -> Dict[str, Any]:
    return record.to_dict()


def unified_document(record: NormalizedRecord) -> Dict[str, Any]:
    """Record fields plus source-aware aliases that carry the unified boosts."""
    document = record.to_dict()
    is_symbol = record.source == "apple-symbol"
    is_book = record.source == "book-chapter"
    document.update(
        symbol=record.display_name if is_symbol else None,
        title=None if is_symbol else record.display_name,
        framework=None if is_book else record.group_name,
        chapter=record.group_name if is_book else None,
        kind=None if is_book else record.category,
        section=record.category if is_book else None,
        snippet=record.code_snippet,
    )
    return document


@dataclass(frozen=True, slots=True)
class IndexProfile:
    """Persisted name, indexed fields and boosts of one kind of index."""

    name: str
    fields: tuple[str, ...]
    boost: Mapping[str, float]
    to_document: Callable[[NormalizedRecord], Dict[str, Any]] = record_document


SYMBOL_PROFILE = IndexProfile(
    "apple-docs",
    ("display_name", "summary", "code_snippet", "group_name", "category", "topics"),
    {"display_name": 5, "group_name": 2, "category": 1},
)
GUIDELINE_PROFILE = IndexProfile("hig", ("display_name", "summary"), {"display_name": 3})
PATTERN_PROFILE = IndexProfile(
    "patterns",
    ("display_name", "summary", "code_snippet", "tags"),
    {"display_name": 3, "tags": 2},
)
RECIPE_PROFILE = IndexProfile(
    "recipes",
    ("local_id", "display_name", "summary", "code_snippet", "tags", "steps"),
    {"local_id": 3, "display_name": 3, "tags": 2},
)
BOOK_PROFILE = IndexProfile(
    "book",
    ("display_name", "group_name", "category", "summary", "code_snippet"),
    {"display_name": 4, "group_name": 3},
)
UNIFIED_PROFILE = IndexProfile(
    "hybrid",
    ("symbol", "title", "summary", "snippet", "framework", "kind", "topics", "tags", "chapter", "section"),
    {"symbol": 5, "title": 4, "chapter": 3, "framework": 2, "kind": 1},
    unified_document,
)


@dataclass(slots=True)
class BuiltIndex:
    index: SearchIndex
    count: int


def dedupe_records(records: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
    """Keep the first record for each ``record_id``."""
    unique: Dict[str, NormalizedRecord] = {}
    for record in records:
        if record.record_id in unique:
            LOGGER.debug("Dropping duplicate record %s from %s", record.record_id, record.source_path)
            continue
        unique[record.record_id] = record
    return list(unique.values())


def collect_symbol_records(config: AppConfig) -> List[NormalizedRecord]:
    root = config.symbol_docs_dir
    if not root.is_dir():
        return []
    parsed = (parse_symbol_file(path, root) for path in iter_content_paths([root], SYMBOL_SUFFIXES))
    return dedupe_records(record for record in parsed if record is not None)


def collect_guideline_records(config: AppConfig) -> List[NormalizedRecord]:
    root = config.guidelines_dir
    if not root.is_dir():
        return []
    parsed = (parse_guideline_file(path, root) for path in iter_content_paths([root], GUIDELINE_SUFFIXES))
    return dedupe_records(record for record in parsed if record is not None)


def _collect_catalog(config: AppConfig, kind: CatalogKind, directory: str) -> List[NormalizedRecord]:
    records: List[NormalizedRecord] = []
    for root in existing_dirs(config.resolve_content_dirs(directory)):
        for path in iter_content_paths([root], YAML_SUFFIXES):
            records.extend(parse_catalog_file(path, kind))
    return dedupe_records(records)


def collect_pattern_records(config: AppConfig) -> List[NormalizedRecord]:
    return _collect_catalog(config, "pattern", "patterns")


def collect_recipe_records(config: AppConfig) -> List[NormalizedRecord]:
    return _collect_catalog(config, "recipe", "recipes")


def collect_book_records(config: AppConfig) -> List[NormalizedRecord]:
    root = config.book_dir
    if not root.is_dir():
        return []
    records: List[NormalizedRecord] = []
    for path in iter_content_paths([root], MARKDOWN_SUFFIXES):
        records.extend(parse_chapter_file(path, root))
    return dedupe_records(records)


Collector = Callable[[AppConfig], List[NormalizedRecord]]

# Unified build order; the first source to claim a record id wins.
SOURCE_COLLECTORS: tuple[tuple[IndexProfile, Collector], ...] = (
    (SYMBOL_PROFILE, collect_symbol_records),
    (GUIDELINE_PROFILE, collect_guideline_records),
    (PATTERN_PROFILE, collect_pattern_records),
    (RECIPE_PROFILE, collect_recipe_records),
    (BOOK_PROFILE, collect_book_records),
)


def _collect_safely(collector: Collector, config: AppConfig) -> List[NormalizedRecord]:
    try:
        return collector(config)
    except OSError as exc:
        LOGGER.warning("Could not scan content for %s: %s", collector.__name__, exc)
        return []


def build_index(
    records: Iterable[NormalizedRecord], profile: IndexProfile, *, fuzzy: float = 0.1
) -> BuiltIndex | None:
    """Index already-deduplicated records; ``None`` when there are none."""
    records = list(records)
    if not records:
        return None
    index = SearchIndex(profile.fields, store_fields=RECORD_FIELDS, boost=profile.boost, fuzzy=fuzzy)
    index.add_all(profile.to_document(record) for record in records)
    return BuiltIndex(index=index, count=len(records))


def build_symbol_index(config: AppConfig) -> BuiltIndex | None:
    return build_index(_collect_safely(collect_symbol_records, config), SYMBOL_PROFILE, fuzzy=config.fuzzy)


def build_guideline_index(config: AppConfig) -> BuiltIndex | None:
    return build_index(_collect_safely(collect_guideline_records, config), GUIDELINE_PROFILE, fuzzy=config.fuzzy)


def build_pattern_index(config: AppConfig) -> BuiltIndex | None:
    return build_index(_collect_safely(collect_pattern_records, config), PATTERN_PROFILE, fuzzy=config.fuzzy)


def build_recipe_index(config: AppConfig) -> BuiltIndex | None:
    return build_index(_collect_safely(collect_recipe_records, config), RECIPE_PROFILE, fuzzy=config.fuzzy)


def build_book_index(config: AppConfig) -> BuiltIndex | None:
    return build_index(_collect_safely(collect_book_records, config), BOOK_PROFILE, fuzzy=config.fuzzy)


def build_unified_index(config: AppConfig) -> BuiltIndex | None:
    """One index over every source; ``None`` when no source has records."""
    records: List[NormalizedRecord] = []
    for _, collector in SOURCE_COLLECTORS:
        records.extend(_collect_safely(collector, config))
    return build_index(dedupe_records(records), UNIFIED_PROFILE, fuzzy=config.fuzzy)


@dataclass(slots=True)
class BuildStats:
    built: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    paths: Dict[str, Path] = field(default_factory=dict)

    def steps(self) -> List[str]:
        lines = [f"{name} indexed ({count}) -> {self.paths[name]}" for name, count in self.built.items()]
        lines.extend(f"{name} skipped (no content)" for name in self.skipped)
        lines.extend(f"{name} failed" for name in self.failed)
        return lines


class IndexBuilder:
    """Runs a full rebuild of every index and persists the results."""

    def __init__(self, config: AppConfig, store: IndexStore) -> None:
        self.config = config
        self.store = store
        self.unified: SearchIndex | None = None

    def rebuild(self) -> BuildStats:
        stats = BuildStats()
        combined: List[NormalizedRecord] = []

        for profile, collector in SOURCE_COLLECTORS:
            records = _collect_safely(collector, self.config)
            combined.extend(records)
            self._build_and_save(profile, records, stats)

        self.unified = self._build_and_save(UNIFIED_PROFILE, dedupe_records(combined), stats)
        return stats

    def _build_and_save(
        self, profile: IndexProfile, records: List[NormalizedRecord], stats: BuildStats
    ) -> SearchIndex | None:
        try:
            built = build_index(records, profile, fuzzy=self.config.fuzzy)
            if built is None:
                LOGGER.info("No content for %s index", profile.name)
                stats.skipped.append(profile.name)
                return None
            stats.paths[profile.name] = self.store.save(profile.name, built.index)
            stats.built[profile.name] = built.count
            LOGGER.info("Indexed %s records into %s", built.count, profile.name)
        except Exception as exc:
            LOGGER.error("Failed to build %s index: %s", profile.name, exc)
            stats.failed.append(profile.name)
            return None
        return built.index
