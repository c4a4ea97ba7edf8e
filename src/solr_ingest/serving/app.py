"""FastAPI application exposing ingestion and search as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from solr_ingest.config import settings
from solr_ingest.engine.base import SearchEngineBase
from solr_ingest.engine.models import IndexOutcome, SearchRequest, SearchResponse
from solr_ingest.exceptions import SearchEngineError
from solr_ingest.ingestion.indexer import ResilientBatchIndexer

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Solr JSON Ingest API",
    version="0.1.0",
    description="Flatten nested JSON documents and index them into Solr collections.",
)


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_engine() -> SearchEngineBase:
    from solr_ingest.engine.solr_store import SolrSearchEngine

    return SolrSearchEngine()


def get_indexer(engine: SearchEngineBase = Depends(get_engine)) -> ResilientBatchIndexer:
    return ResilientBatchIndexer(engine)


# ── Response schemas ──────────────────────────────────────────────────
class IndexResponse(BaseModel):
    """Summary of one ingestion request."""

    collection: str
    submitted: int
    succeeded: int
    failed: int
    used_fallback: bool

    @classmethod
    def from_outcome(cls, outcome: IndexOutcome) -> IndexResponse:
        return cls(
            collection=outcome.collection,
            submitted=outcome.submitted,
            succeeded=outcome.succeeded,
            failed=outcome.failed,
            used_fallback=outcome.used_fallback,
        )


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/collections/{collection}/documents", response_model=IndexResponse)
async def index_documents(
    collection: str,
    request: Request,
    indexer: ResilientBatchIndexer = Depends(get_indexer),
) -> IndexResponse:
    """Flatten the raw JSON request body and index it into *collection*."""
    body = await request.body()
    try:
        outcome = await run_in_threadpool(indexer.run_json, collection, body)
    except SearchEngineError as exc:
        logger.error("Indexing into %r failed: %s", collection, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return IndexResponse.from_outcome(outcome)


@app.post("/collections/{collection}/search", response_model=SearchResponse)
async def search(
    collection: str,
    search_request: SearchRequest,
    engine: SearchEngineBase = Depends(get_engine),
) -> SearchResponse:
    """Search *collection*."""
    try:
        return await run_in_threadpool(engine.search, collection, search_request)
    except SearchEngineError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
