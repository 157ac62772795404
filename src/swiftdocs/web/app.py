"""FastAPI application exposing the swiftdocs tools over HTTP."""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from swiftdocs.config import AppConfig
from swiftdocs.index.search import Searcher, SearchRequest
from swiftdocs.models import NormalizedRecord
from swiftdocs.tools.external import format_apply, lint_run
from swiftdocs.tools.guidelines import guidelines_report
from swiftdocs.tools.lookup import (
    book_search,
    docs_search,
    evolution_lookup,
    guideline_search,
    index_status,
    patterns_search,
    recipe_lookup,
    symbol_docs_search,
    symbol_lookup,
)

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 100


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    yield


app = FastAPI(title="swiftdocs", version="0.1.0", lifespan=lifespan)
app.state.searcher = None
_searcher_lock = threading.Lock()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class SearchPayload(BaseModel):
    query: str
    sources: List[str] | None = None
    frameworks: List[str] | None = None
    kinds: List[str] | None = None
    topics: List[str] | None = None
    tags: List[str] | None = None
    limit: int | None = None


class LookupPayload(BaseModel):
    query: str
    limit: int = 5


class SymbolPayload(BaseModel):
    query: str
    frameworks: List[str] | None = None
    limit: int = 5
    resolve_aliases: bool = False


class CheckPayload(BaseModel):
    code: str


class LintPayload(BaseModel):
    path: str = "."
    config_path: str | None = None
    strict: bool = False


class FormatPayload(BaseModel):
    code: str
    swift_version: str = "6"
    assume_filepath: str = "input.swift"


def _config() -> AppConfig:
    return AppConfig()


def _searcher(warm: bool = True) -> Searcher:
    """The app-wide searcher, replaced when the configured roots change."""
    config = _config()
    with _searcher_lock:
        searcher: Searcher | None = app.state.searcher
        if searcher is None or (searcher.config.cache_dir, searcher.config.content_dir) != (
            config.cache_dir,
            config.content_dir,
        ):
            searcher = Searcher(config)
            app.state.searcher = searcher
        if warm:
            # Load or build the unified index once, before concurrent searches use it.
            searcher.index
    return searcher


def _require_query(query: str) -> str:
    query = query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")
    return query


def _clamp(limit: int) -> int:
    return max(0, min(limit, MAX_LIMIT))


def _records(records: List[NormalizedRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]


@app.post("/search")
async def search_documents(payload: SearchPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    request = SearchRequest(
        query=query,
        sources=payload.sources,
        frameworks=payload.frameworks,
        kinds=payload.kinds,
        topics=payload.topics,
        tags=payload.tags,
        limit=None if payload.limit is None else _clamp(payload.limit),
    )
    response = await asyncio.to_thread(lambda: _searcher().search(request))
    return response.to_dict()


def _run_rebuild() -> Dict[str, Any]:
    stats = _searcher(warm=False).rebuild_all()
    return {
        "built": stats.built,
        "skipped": stats.skipped,
        "failed": stats.failed,
        "steps": stats.steps(),
    }


@app.post("/rebuild")
async def rebuild_indexes() -> Dict[str, Any]:
    stats = await asyncio.to_thread(_run_rebuild)
    return {"status": "ok" if not stats["failed"] else "partial", "stats": stats}


@app.get("/status")
async def status() -> Dict[str, Any]:
    return index_status(_config())


@app.post("/evolution")
async def evolution(payload: LookupPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    proposals = evolution_lookup(_config(), query, limit=_clamp(payload.limit))
    return {"results": [proposal.to_dict() for proposal in proposals]}


@app.post("/patterns")
async def patterns(payload: LookupPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    return {"results": _records(patterns_search(_config(), query, limit=_clamp(payload.limit)))}


@app.post("/recipes")
async def recipes(payload: LookupPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    return {"results": _records(recipe_lookup(_config(), query, limit=_clamp(payload.limit)))}


@app.post("/guidelines")
async def guidelines(payload: LookupPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    return {"results": _records(guideline_search(_config(), query, limit=_clamp(payload.limit)))}


@app.post("/symbols")
async def symbols(payload: SymbolPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    config = _config()
    if payload.resolve_aliases:
        records = symbol_lookup(config, query, limit=_clamp(payload.limit))
    else:
        records = symbol_docs_search(config, query, frameworks=payload.frameworks, limit=_clamp(payload.limit))
    return {"results": _records(records)}


@app.post("/book")
async def book(payload: LookupPayload) -> Dict[str, Any]:
    query = _require_query(payload.query)
    config = _config()
    limit = _clamp(payload.limit)
    return {
        "results": _records(book_search(config, query, limit=limit)),
        "excerpts": docs_search(config, query, limit=limit),
    }


@app.post("/check")
async def check(payload: CheckPayload) -> Dict[str, Any]:
    return guidelines_report(payload.code)


@app.post("/lint")
async def lint(payload: LintPayload) -> Dict[str, Any]:
    return await asyncio.to_thread(lint_run, payload.path, payload.config_path, payload.strict)


@app.post("/format")
async def format_code(payload: FormatPayload) -> Dict[str, Any]:
    if not payload.code.strip():
        raise HTTPException(status_code=400, detail="Empty code")
    return await asyncio.to_thread(format_apply, payload.code, payload.swift_version, payload.assume_filepath)
