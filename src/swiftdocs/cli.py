"""Command line interface for swiftdocs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from swiftdocs.config import CACHE_DIR_ENV, AppConfig
from swiftdocs.index.indexer import IndexBuilder
from swiftdocs.index.search import Searcher, SearchRequest
from swiftdocs.index.storage import UNIFIED_INDEX, IndexStore
from swiftdocs.tools.external import SyncError, import_docsets, sync_sources
from swiftdocs.tools.guidelines import check_guidelines
from swiftdocs.tools.lookup import evolution_lookup, index_status, patterns_search, recipe_lookup

console = Console()
app = typer.Typer(help="swiftdocs - Swift documentation search and code-quality tools")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _config(cache_dir: Optional[Path], content_dir: Optional[Path] = None) -> AppConfig:
    return AppConfig(cache_dir=cache_dir, content_dir=content_dir)


def _oneline(text: str | None, limit: int = 120) -> str:
    return (text or "").replace("\n", " ")[:limit]


CacheOption = typer.Option(None, "--cache-dir", help="Cache directory (defaults to $SWIFTDOCS_CACHE_DIR or ./.cache)")
ContentOption = typer.Option(None, "--content-dir", help="Bundled content directory (defaults to ./content)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command()
def rebuild(
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
    verbose: bool = VerboseOption,
) -> None:
    """Rebuild every per-source index and the unified index."""
    _setup_logging(verbose)
    config = _config(cache_dir, content_dir)
    console.print(f"Rebuilding indexes into [bold]{config.index_dir}[/bold]...")
    stats = IndexBuilder(config, IndexStore(config.index_dir)).rebuild()
    if not stats.built:
        console.print("[yellow]No content found, nothing indexed.[/yellow]")
    for step in stats.steps():
        console.print(step)
    if stats.failed:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    source: List[str] = typer.Option([], "--source", "-s", help="Restrict to a source (repeatable)"),
    framework: List[str] = typer.Option([], "--framework", "-f", help="Restrict to a framework (repeatable)"),
    kind: List[str] = typer.Option([], "--kind", "-k", help="Restrict to a kind (repeatable)"),
    topic: List[str] = typer.Option([], "--topic", help="Restrict to a topic (repeatable)"),
    tag: List[str] = typer.Option([], "--tag", "-t", help="Restrict to a tag (repeatable)"),
    limit: int = typer.Option(AppConfig().default_limit, help="Number of results to display"),
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
    verbose: bool = VerboseOption,
) -> None:
    """Search every source through the unified index."""
    _setup_logging(verbose)
    searcher = Searcher(_config(cache_dir, content_dir))
    response = searcher.search(
        SearchRequest(
            query=query,
            sources=source or None,
            frameworks=framework or None,
            kinds=kind or None,
            topics=topic or None,
            tags=tag or None,
            limit=limit,
        )
    )
    if not response.results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Source")
    table.add_column("Title")
    table.add_column("Group")
    table.add_column("Summary")

    for hit in response.results:
        record = hit.record
        table.add_row(
            f"{hit.score:.3f}",
            record.source,
            record.display_name or "",
            record.group_name or "",
            _oneline(record.summary),
        )

    console.print(table)


@app.command()
def status(cache_dir: Optional[Path] = CacheOption) -> None:
    """Show which persisted indexes exist."""
    report = index_status(_config(cache_dir))
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Index")
    table.add_column("Exists")
    table.add_column("Documents")
    table.add_column("Size")
    table.add_column("Modified")
    for name, info in report["indexes"].items():
        table.add_row(
            name,
            "yes" if info["exists"] else "no",
            str(info.get("document_count", "")),
            str(info.get("size_bytes", "")),
            info.get("mtime", ""),
        )
    console.print(f"Index directory: [bold]{report['index_dir']}[/bold]")
    console.print(table)


@app.command()
def evolution(
    query: str = typer.Argument(..., help="Proposal id (SE-0001) or keywords"),
    limit: int = typer.Option(5, help="Maximum number of proposals"),
    cache_dir: Optional[Path] = CacheOption,
) -> None:
    """Look up Swift Evolution proposals."""
    proposals = evolution_lookup(_config(cache_dir), query, limit=limit)
    if not proposals:
        console.print("[yellow]No proposals found.[/yellow]")
        return
    for proposal in proposals:
        console.print(f"[bold]{proposal.id}[/bold] {proposal.title} ({proposal.status})")


@app.command()
def patterns(
    query: str = typer.Argument(..., help="Tag or keywords"),
    limit: int = typer.Option(5, help="Maximum number of patterns"),
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
) -> None:
    """Search curated patterns by tag or keywords."""
    records = patterns_search(_config(cache_dir, content_dir), query, limit=limit)
    if not records:
        console.print("[yellow]No patterns found.[/yellow]")
        return
    for record in records:
        tags = ", ".join(record.tags)
        console.print(f"[bold]{record.display_name}[/bold] ({tags})")
        if record.summary:
            console.print(f"  {_oneline(record.summary, 180)}")


@app.command()
def recipes(
    query: str = typer.Argument(..., help="Recipe id or keywords"),
    limit: int = typer.Option(5, help="Maximum number of recipes"),
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
) -> None:
    """Look up recipes by id or keywords."""
    records = recipe_lookup(_config(cache_dir, content_dir), query, limit=limit)
    if not records:
        console.print("[yellow]No recipes found.[/yellow]")
        return
    for record in records:
        console.print(f"[bold]{record.local_id}[/bold] {record.display_name}")
        for number, step in enumerate(record.steps, start=1):
            console.print(f"  {number}. {step}")


@app.command()
def check(
    path: Path = typer.Argument(..., help="Swift source file", exists=True, dir_okay=False, resolve_path=True),
) -> None:
    """Check a Swift file against naming and AppKit heuristics."""
    issues = check_guidelines(path.read_text(encoding="utf-8"))
    if not issues:
        console.print("[green]No issues found.[/green]")
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Line")
    table.add_column("Rule")
    table.add_column("Message")
    for issue in issues:
        table.add_row("" if issue.line is None else str(issue.line), issue.rule, issue.message)
    console.print(table)
    raise typer.Exit(code=1)


@app.command()
def sync(
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
    verbose: bool = VerboseOption,
) -> None:
    """Clone or update the content repositories, then rebuild every index."""
    _setup_logging(verbose)
    try:
        steps = sync_sources(_config(cache_dir, content_dir))
    except SyncError as exc:
        console.print(f"[red]Sync failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    for step in steps:
        console.print(step)


@app.command("import-docs")
def import_docs(
    source: Path = typer.Argument(..., help="DocC directory or .zip/.tar.gz/.tgz/.tar archive"),
    framework: Optional[str] = typer.Option(None, "--framework", "-f", help="Framework name for a single docset"),
    reindex: bool = typer.Option(True, "--reindex/--no-reindex", help="Rebuild the symbol and unified indexes"),
    cache_dir: Optional[Path] = CacheOption,
    content_dir: Optional[Path] = ContentOption,
    verbose: bool = VerboseOption,
) -> None:
    """Import local DocC JSON into the symbol docs cache."""
    _setup_logging(verbose)
    result = import_docsets(_config(cache_dir, content_dir), source, framework=framework, reindex=reindex)
    if not result["ok"]:
        console.print(f"[red]Import failed:[/red] {result['message']}")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Framework")
    table.add_column("Files", justify="right")
    table.add_column("Destination")
    for name, info in result["imported"]["frameworks"].items():
        table.add_row(name, str(info["files"]), info["dest"])
    console.print(table)
    for name, info in result.get("indexes", {}).items():
        console.print(f"{name} indexed ({info['count']}) -> {info['path']}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    cache_dir: Optional[Path] = CacheOption,
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional extra
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from swiftdocs.web.app import app as web_app

    if cache_dir is not None:
        os.environ[CACHE_DIR_ENV] = str(cache_dir)
    config = _config(cache_dir)
    if not IndexStore(config.index_dir).path_for(UNIFIED_INDEX).exists():
        console.print("[yellow]Warning: no persisted index, searches will build one in memory.[/yellow]")

    console.print(f"Starting HTTP API on http://{host}:{port} (cache: {config.cache_dir})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
