"""Utility helpers for working with content files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

import yaml

LOGGER = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
MARKDOWN_SUFFIXES = (".md", ".markdown")


def iter_content_paths(inputs: Iterable[Path], suffixes: Sequence[str]) -> Iterator[Path]:
    """Yield files with one of ``suffixes``, descending into directories in sorted order.

    Missing inputs are skipped silently.
    """
    wanted = tuple(suffix.lower() for suffix in suffixes)
    for item in inputs:
        if item.is_dir():
            children = sorted(child for child in item.rglob("*") if child.is_file())
            yield from (child for child in children if child.suffix.lower() in wanted)
        elif item.is_file() and item.suffix.lower() in wanted:
            yield item


def existing_dirs(paths: Iterable[Path]) -> list[Path]:
    return [path for path in paths if path.is_dir()]


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_yaml_documents(path: Path) -> list[Any]:
    """Load every YAML document in a file, dropping empty ones.

    Returns an empty list when the file is unreadable or not valid YAML.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            documents = [doc for doc in yaml.safe_load_all(handle) if doc is not None]
    except (OSError, UnicodeDecodeError, yaml.YAMLError, RecursionError) as exc:
        LOGGER.debug("Skipping unreadable YAML %s: %s", path, exc)
        return []
    return documents


def relative_key(path: Path, root: Path) -> str:
    """Path of ``path`` below ``root`` in POSIX form, or the full path when outside it."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
