"""External binaries: the command runner, SwiftLint/formatter wrappers and content sync."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence

from swiftdocs.config import AppConfig
from swiftdocs.index.indexer import (
    SYMBOL_PROFILE,
    BuildStats,
    IndexBuilder,
    build_symbol_index,
    build_unified_index,
)
from swiftdocs.index.storage import UNIFIED_INDEX, IndexStore
from swiftdocs.ingestion.symbols import extract_framework
from swiftdocs.utils.files import iter_content_paths, read_text

LOGGER = logging.getLogger(__name__)

EVOLUTION_REPO = "https://github.com/apple/swift-evolution.git"
BOOK_REPO = "https://github.com/apple/swift-book.git"
CONTENT_REPOS: Sequence[tuple[str, str]] = (
    ("swift-evolution", EVOLUTION_REPO),
    ("swift-book", BOOK_REPO),
)

FORMAT_TIMEOUT = 20.0
SYNC_TIMEOUT = 600.0
ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz", ".tar")
SAMPLE_DOCC_DIR = "sample-docc"


class SyncError(RuntimeError):
    """Raised when a content source cannot be cloned or updated."""


@dataclass(slots=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    timed_out: bool = False


def run_command(
    command: str,
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    input_text: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run ``command`` with ``args`` and capture its output.

    A process that outlives ``timeout`` seconds is killed and reported with
    code ``-1``. A missing executable raises ``FileNotFoundError``.
    """
    LOGGER.debug("Running %s %s", command, " ".join(args))
    try:
        completed = subprocess.run(
            [command, *args],
            cwd=cwd,
            input=input_text or "",
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        LOGGER.warning("%s timed out after %ss", command, timeout)
        return CommandResult(code=-1, stdout=_as_text(exc.stdout), stderr=_as_text(exc.stderr), timed_out=True)
    return CommandResult(code=completed.returncode, stdout=completed.stdout, stderr=completed.stderr)


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def lint_run(path: str = ".", config_path: str | None = None, strict: bool = False) -> Dict[str, Any]:
    swiftlint = shutil.which("swiftlint")
    if not swiftlint:
        return {
            "ok": False,
            "message": "SwiftLint not found. Install via `brew install swiftlint` or ensure it's on PATH.",
        }

    args: List[str] = ["lint", "--quiet", "--reporter", "json"]
    if config_path:
        args.extend(["--config", config_path])
    if path:
        args.append(path)
    result = run_command(swiftlint, args, timeout=60.0 if strict else 30.0)
    # SwiftLint exits with 2 when it found violations.
    return {
        "ok": result.code in (0, 2),
        "code": result.code,
        "stdout": result.stdout,
        "stderr": result.stderr,
    }


def format_apply(code: str, swift_version: str = "6", assume_filepath: str = "input.swift") -> Dict[str, Any]:
    """Format ``code`` with swift-format, falling back to SwiftFormat."""
    swift_format = shutil.which("swift-format")
    if swift_format:
        result = run_command(
            swift_format,
            ["format", "--assume-filename", assume_filepath],
            input_text=code,
            timeout=FORMAT_TIMEOUT,
        )
        if result.code == 0:
            return {"ok": True, "tool": "swift-format", "formatted": result.stdout}

    swiftformat = shutil.which("swiftformat")
    if swiftformat:
        result = run_command(
            swiftformat,
            ["--stdin", "--quiet", "--swiftversion", swift_version],
            input_text=code,
            timeout=FORMAT_TIMEOUT,
        )
        if result.code == 0:
            return {"ok": True, "tool": "SwiftFormat", "formatted": result.stdout}

    return {"ok": False, "message": "No formatter found (swift-format or swiftformat). Install one and try again."}


def git_clone_or_pull(config: AppConfig, repo: str, name: str) -> str:
    """Shallow-clone ``repo`` into the cache, or fast-forward an existing clone."""
    dest = config.cache_dir / name
    if not dest.exists():
        config.cache_dir.mkdir(parents=True, exist_ok=True)
        action, args = "cloned", ["clone", "--depth", "1", repo, str(dest)]
    else:
        action, args = "updated", ["-C", str(dest), "pull", "--ff-only"]

    try:
        result = run_command("git", args, timeout=max(config.command_timeout, SYNC_TIMEOUT))
    except FileNotFoundError as exc:
        raise SyncError("git is not installed") from exc
    if result.code != 0:
        verb = "clone" if action == "cloned" else "pull"
        raise SyncError(f"git {verb} failed: {result.stderr or result.stdout}")
    return action


def sync_sources(config: AppConfig, rebuild: bool = True) -> List[str]:
    """Fetch or update every content repository, then rebuild all indexes."""
    steps: List[str] = []
    for name, repo in CONTENT_REPOS:
        action = git_clone_or_pull(config, repo, name)
        LOGGER.info("%s %s", name, action)
        steps.append(f"{name} {action}")

    for directory in (config.symbol_docs_dir, config.guidelines_dir):
        directory.mkdir(parents=True, exist_ok=True)
        steps.append(f"{directory.name} dir ready at {directory}")

    sample = config.content_dir / SAMPLE_DOCC_DIR
    if sample.is_dir():
        shutil.copytree(sample, config.symbol_docs_dir, dirs_exist_ok=True)
        steps.append(f"Seeded sample DocC into {config.symbol_docs_dir.name}")

    if rebuild:
        stats: BuildStats = IndexBuilder(config, IndexStore(config.index_dir)).rebuild()
        steps.extend(stats.steps())
    return steps


def _is_archive(path: Path) -> bool:
    return path.name.lower().endswith(ARCHIVE_SUFFIXES)


def _detect_framework(doc_root: Path) -> str | None:
    """Module name of the first top-level DocC JSON file, when it declares one."""
    paths = sorted(doc_root.glob("*.json"))
    if not paths:
        return None
    try:
        return extract_framework(json.loads(read_text(paths[0])))
    except (OSError, UnicodeDecodeError, ValueError, RecursionError) as exc:
        LOGGER.debug("Could not read framework from %s: %s", paths[0], exc)
        return None


def _copy_framework(source: Path, dest: Path) -> Dict[str, Any]:
    shutil.copytree(source, dest, dirs_exist_ok=True)
    return {"files": sum(1 for _ in iter_content_paths([dest], (".json",))), "dest": str(dest)}


def _copy_docsets(doc_root: Path, target: Path, framework: str | None) -> Dict[str, Dict[str, Any]]:
    # A root holding JSON files is one framework; otherwise every subdirectory is one.
    if any(doc_root.glob("*.json")):
        name = framework or _detect_framework(doc_root) or "Unknown"
        return {name: _copy_framework(doc_root, target / name)}
    return {
        child.name: _copy_framework(child, target / child.name)
        for child in sorted(doc_root.iterdir())
        if child.is_dir()
    }


def _reindex_symbols(config: AppConfig) -> Dict[str, Any]:
    store = IndexStore(config.index_dir)
    indexes: Dict[str, Any] = {}
    for name, builder in ((SYMBOL_PROFILE.name, build_symbol_index), (UNIFIED_INDEX, build_unified_index)):
        built = builder(config)
        if built is not None:
            indexes[name] = {"count": built.count, "path": str(store.save(name, built.index))}
    return indexes


def import_docsets(
    config: AppConfig,
    source_path: Path,
    framework: str | None = None,
    reindex: bool = True,
) -> Dict[str, Any]:
    """Copy a DocC directory or archive into the symbol docs cache.

    A directory (or unpacked ``.zip``/``.tar.gz``/``.tgz``/``.tar`` archive)
    with JSON files at its top level becomes one framework, named by
    ``framework``, by the module its first JSON file declares, or ``Unknown``.
    Otherwise each first-level subdirectory is imported as its own framework.
    The symbol docs and unified indexes are rebuilt afterwards unless
    ``reindex`` is false.
    """
    source_path = Path(source_path).expanduser()
    if not source_path.exists():
        return {"ok": False, "message": f"Source path not found: {source_path}"}
    if source_path.is_file() and not _is_archive(source_path):
        return {"ok": False, "message": "Unsupported archive format. Use .zip, .tar.gz, .tgz, or .tar"}

    target = config.symbol_docs_dir
    target.mkdir(parents=True, exist_ok=True)
    try:
        if source_path.is_dir():
            frameworks = _copy_docsets(source_path, target, framework)
        else:
            with tempfile.TemporaryDirectory(prefix="swiftdocs-import-") as tmp:
                shutil.unpack_archive(str(source_path), tmp)
                frameworks = _copy_docsets(Path(tmp), target, framework)
    except (OSError, ValueError) as exc:
        LOGGER.error("Failed to import %s: %s", source_path, exc)
        return {"ok": False, "message": str(exc)}

    total = sum(item["files"] for item in frameworks.values())
    LOGGER.info("Imported %s DocC files from %s", total, source_path)
    result: Dict[str, Any] = {
        "ok": True,
        "cache_dir": str(config.cache_dir),
        "imported": {"total_files": total, "frameworks": frameworks},
    }
    if reindex:
        result["indexes"] = _reindex_symbols(config)
    return result
