"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CACHE_DIR_ENV = "SWIFTDOCS_CACHE_DIR"


def _get_default_cache_dir() -> Path:
    """Cache root: ``$SWIFTDOCS_CACHE_DIR`` when set, else ``./.cache``."""
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return (Path.cwd() / ".cache").resolve()


@dataclass(slots=True)
class AppConfig:
    cache_dir: Path | None = None
    content_dir: Path | None = None
    fuzzy: float = 0.1
    default_limit: int = 10
    command_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.cache_dir is None:
            self.cache_dir = _get_default_cache_dir()
        if self.content_dir is None:
            self.content_dir = Path.cwd() / "content"
        self.cache_dir = Path(self.cache_dir)
        self.content_dir = Path(self.content_dir)

    @property
    def index_dir(self) -> Path:
        return self.cache_dir / "index"

    @property
    def symbol_docs_dir(self) -> Path:
        return self.cache_dir / "apple-docs"

    @property
    def guidelines_dir(self) -> Path:
        return self.cache_dir / "hig"

    @property
    def book_dir(self) -> Path:
        return self.cache_dir / "swift-book" / "TSPL.docc"

    @property
    def proposals_dir(self) -> Path:
        return self.cache_dir / "swift-evolution" / "proposals"

    @property
    def api_guidelines_page(self) -> Path:
        return self.cache_dir / "guidelines" / "api-design-guidelines.html"

    def resolve_content_dirs(self, kind: str) -> list[Path]:
        """Bundled content first, then the cache copy, e.g. for ``patterns``."""
        return [self.content_dir / kind, self.cache_dir / "content" / kind]

    def resolve_aliases_files(self) -> list[Path]:
        return [
            self.cache_dir / "content" / "symbols" / "aliases.yaml",
            self.content_dir / "symbols" / "aliases.yaml",
        ]
