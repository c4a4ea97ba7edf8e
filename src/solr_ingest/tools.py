"""LangChain tool definitions for indexing and searching collections.

Each tool wraps the ingestion / engine stack so an agent can call it
autonomously.  The engine and indexer are created lazily on first use; in
tests, patch :func:`_get_indexer` / :func:`_get_engine` to inject fakes.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import tool

from solr_ingest.engine.models import SearchRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_engine() -> Any:
    """Lazy-import to avoid import-time side-effects (Solr client setup)."""
    from solr_ingest.engine.solr_store import SolrSearchEngine

    return SolrSearchEngine()


def _get_indexer() -> Any:
    from solr_ingest.ingestion.indexer import ResilientBatchIndexer

    return ResilientBatchIndexer(_get_engine())


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@tool
def index_json_documents(collection: str, json_documents: str) -> int:
    """Index documents from a JSON string into a Solr collection.

    The input must be a JSON array of objects.  Nested objects are
    flattened into ``parent_child`` field names, field names are
    lowercased and reduced to letters, digits and underscores, arrays of
    plain values become multi-valued fields, and null values are dropped.
    Input that is not an array indexes nothing.

    Parameters
    ----------
    collection:
        Solr collection to index into.
    json_documents:
        JSON array of documents.

    Returns
    -------
    int
        Number of documents successfully indexed.
    """
    count = _get_indexer().index_json(collection, json_documents)
    logger.info("index_json_documents indexed %d documents into %r", count, collection)
    return count


@tool
def search(
    collection: str,
    query: str | None = None,
    filter_queries: list[str] | None = None,
    facet_fields: list[str] | None = None,
    sort_clauses: list[str] | None = None,
    start: int | None = None,
    rows: int | None = None,
) -> dict[str, Any]:
    """Search a Solr collection with optional filters, facets, sorting and paging.

    Solr dynamic field suffixes hint at the field type: ``_s`` string,
    ``_t`` tokenized text, ``_i`` int, ``_l`` long, ``_f`` float,
    ``_d`` double, ``_dt`` date, ``_b`` boolean.

    Parameters
    ----------
    collection:
        Solr collection to query.
    query:
        Solr q parameter.  Defaults to ``*:*``.
    filter_queries:
        Solr fq parameters.
    facet_fields:
        Fields to facet on.
    sort_clauses:
        Sort clauses such as ``"price asc"``.
    start:
        Offset for pagination.
    rows:
        Number of rows to return.

    Returns
    -------
    dict
        ``num_found``, ``start``, ``max_score``, ``documents`` and ``facets``.
    """
    request = SearchRequest(
        query=query,
        filter_queries=filter_queries,
        facet_fields=facet_fields,
        sort_clauses=sort_clauses,
        start=start,
        rows=rows,
    )
    response = _get_engine().search(collection, request)
    logger.info("search returned %d of %d documents from %r", len(response.documents), response.num_found, collection)
    return response.model_dump()


# ---------------------------------------------------------------------------
# Tool registry
# ---------------------------------------------------------------------------

TOOL_REGISTRY: dict[str, Any] = {
    "index_json_documents": index_json_documents,
    "search": search,
}
"""Mapping of tool name → tool callable."""
