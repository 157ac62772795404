"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from swiftdocs.config import CACHE_DIR_ENV, AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Defaults to ./.cache and ./content."""
        monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
        monkeypatch.chdir(tmp_path)

        config = AppConfig()

        assert config.cache_dir == (tmp_path / ".cache").resolve()
        assert config.content_dir.resolve() == (tmp_path / "content").resolve()
        assert config.fuzzy == 0.1
        assert config.default_limit == 10

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """The cache directory can be moved through the environment."""
        monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "elsewhere"))

        config = AppConfig()

        assert config.cache_dir == (tmp_path / "elsewhere").resolve()

    def test_explicit_dirs_win(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "ignored"))

        config = AppConfig(cache_dir=tmp_path / "cache", content_dir=tmp_path / "content")

        assert config.cache_dir == tmp_path / "cache"
        assert config.content_dir == tmp_path / "content"

    def test_derived_roots(self, tmp_path: Path) -> None:
        config = AppConfig(cache_dir=tmp_path, content_dir=tmp_path / "content")

        assert config.index_dir == tmp_path / "index"
        assert config.symbol_docs_dir == tmp_path / "apple-docs"
        assert config.guidelines_dir == tmp_path / "hig"
        assert config.book_dir == tmp_path / "swift-book" / "TSPL.docc"
        assert config.proposals_dir == tmp_path / "swift-evolution" / "proposals"

    def test_resolve_content_dirs(self, tmp_path: Path) -> None:
        """Bundled content comes before the cached copy."""
        config = AppConfig(cache_dir=tmp_path / "cache", content_dir=tmp_path / "content")

        assert config.resolve_content_dirs("patterns") == [
            tmp_path / "content" / "patterns",
            tmp_path / "cache" / "content" / "patterns",
        ]
