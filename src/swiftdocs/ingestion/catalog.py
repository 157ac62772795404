"""Curated pattern and recipe catalogs stored as YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Literal

from swiftdocs.models import NormalizedRecord, make_record_id, unique_labels
from swiftdocs.utils.files import read_yaml_documents

LOGGER = logging.getLogger(__name__)

CatalogKind = Literal["pattern", "recipe"]


def _entries(document: Any) -> Iterator[Any]:
    if isinstance(document, list):
        yield from document
    else:
        yield document


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_catalog_entry(entry: Any, kind: CatalogKind, path: Path) -> NormalizedRecord | None:
    """Build a record from one entry; entries lacking ``id`` or ``title`` are skipped."""
    if not isinstance(entry, dict):
        return None
    local_id = _optional_text(entry.get("id"))
    title = _optional_text(entry.get("title"))
    if not local_id or not title:
        return None

    values: dict[str, Any] = {
        "tags": unique_labels(entry.get("tags")),
        "summary": _optional_text(entry.get("summary")),
        "code_snippet": _optional_text(entry.get("snippet")),
        "takeaways": unique_labels(entry.get("takeaways")),
    }
    if kind == "recipe":
        # Steps keep their order and may repeat.
        steps = entry.get("steps") or []
        values["steps"] = tuple(str(step) for step in steps) if isinstance(steps, list) else ()
        values["prerequisites"] = unique_labels(entry.get("prerequisites"))
        values["references"] = unique_labels(entry.get("references"))

    return NormalizedRecord(
        record_id=make_record_id(kind, None, local_id),
        source=kind,
        display_name=title,
        local_id=local_id,
        source_path=str(path),
        **values,
    )


def parse_catalog_file(path: Path, kind: CatalogKind) -> list[NormalizedRecord]:
    """Parse every entry of a YAML file holding one mapping or a list of them."""
    records: list[NormalizedRecord] = []
    for document in read_yaml_documents(path):
        for entry in _entries(document):
            try:
                record = parse_catalog_entry(entry, kind, path)
            except (TypeError, ValueError) as exc:
                LOGGER.debug("Skipping %s entry in %s: %s", kind, path, exc)
                continue
            if record is not None:
                records.append(record)
    return records
