"""JSON persistence for search indexes."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence

from swiftdocs.index.engine import SearchIndex

LOGGER = logging.getLogger(__name__)

INDEX_NAMES: Sequence[str] = ("apple-docs", "hig", "patterns", "recipes", "book", "hybrid")
UNIFIED_INDEX = "hybrid"


class IndexStore:
    """Saves and loads named indexes as ``<index_dir>/<name>.json``."""

    def __init__(self, index_dir: Path) -> None:
        self.index_dir = Path(index_dir)

    def path_for(self, name: str) -> Path:
        return self.index_dir / f"{name}.json"

    def save(self, name: str, index: SearchIndex) -> Path:
        """Write atomically: readers see the old file or the new one, never a partial one."""
        self.index_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(name)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.index_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(index.to_dict(), handle, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, target)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        LOGGER.debug("Saved %s index (%s documents) to %s", name, index.document_count, target)
        return target

    def load(self, name: str) -> SearchIndex | None:
        """Return the persisted index, or ``None`` when absent or unusable."""
        path = self.path_for(name)
        if not path.is_file():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            return SearchIndex.from_dict(data)
        except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.warning("Ignoring unusable index %s: %s", path, exc)
            return None

    def index_info(self, name: str) -> Dict[str, Any]:
        path = self.path_for(name)
        info: Dict[str, Any] = {"path": str(path), "exists": path.is_file()}
        if not info["exists"]:
            return info
        try:
            stat = path.stat()
        except OSError:
            return info
        info["size_bytes"] = stat.st_size
        info["mtime"] = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat()
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, UnicodeDecodeError, ValueError):
            return info
        count = data.get("document_count") if isinstance(data, dict) else None
        if isinstance(count, int):
            info["document_count"] = count
        return info

    def status(self) -> Dict[str, Any]:
        return {
            "index_dir": str(self.index_dir),
            "indexes": {name: self.index_info(name) for name in INDEX_NAMES},
        }
