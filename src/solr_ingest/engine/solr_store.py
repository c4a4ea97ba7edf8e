"""Solr implementation of the search-engine abstraction."""

from __future__ import annotations

import logging
import threading
from typing import Any

import pysolr
import requests

from solr_ingest.config import settings
from solr_ingest.engine.base import SearchEngineBase
from solr_ingest.engine.models import SearchRequest, SearchResponse
from solr_ingest.exceptions import CommitError, SearchEngineError

logger = logging.getLogger(__name__)

_ENGINE_ERRORS = (pysolr.SolrError, requests.RequestException)


def normalize_solr_url(url: str) -> str:
    """Return *url* ending in ``/`` with a ``/solr/`` path segment.

    >>> normalize_solr_url("http://localhost:8983")
    'http://localhost:8983/solr/'
    >>> normalize_solr_url("http://localhost:8983/solr")
    'http://localhost:8983/solr/'
    """
    if not url.endswith("/"):
        url += "/"
    if not url.endswith("/solr/") and "/solr/" not in url:
        url += "solr/"
    return url


def _pairs_to_counts(values: list[Any]) -> dict[str, int]:
    """Convert Solr's flat ``[value, count, value, count]`` facet list."""
    return {str(value): int(count) for value, count in zip(values[::2], values[1::2])}


def build_search_params(request: SearchRequest) -> tuple[str, dict[str, Any]]:
    """Translate *request* into a Solr ``q`` string and extra parameters."""
    query = request.query or "*:*"
    params: dict[str, Any] = {}

    if request.filter_queries:
        params["fq"] = list(request.filter_queries)

    if request.facet_fields:
        params["facet"] = "true"
        params["facet.field"] = list(request.facet_fields)
        params["facet.mincount"] = 1
        params["facet.sort"] = "count"

    if request.sort_clauses:
        params["sort"] = ",".join(request.sort_clauses)

    if request.start is not None:
        params["start"] = request.start
    if request.rows is not None:
        params["rows"] = request.rows

    return query, params


class SolrSearchEngine(SearchEngineBase):
    """Solr-backed document engine.

    Parameters
    ----------
    base_url:
        Solr server URL; normalized with :func:`normalize_solr_url`.
    connection_timeout / socket_timeout:
        Connect and read timeouts in seconds, forwarded to ``requests``.
    """

    def __init__(
        self,
        base_url: str = settings.solr_url,
        *,
        connection_timeout: float = settings.solr_connection_timeout,
        socket_timeout: float = settings.solr_socket_timeout,
    ) -> None:
        self.base_url = normalize_solr_url(base_url)
        self._timeout = (connection_timeout, socket_timeout)
        self._clients: dict[str, pysolr.Solr] = {}
        self._lock = threading.Lock()

    def client(self, collection: str) -> pysolr.Solr:
        """Return the cached ``pysolr.Solr`` client for *collection*."""
        with self._lock:
            solr = self._clients.get(collection)
            if solr is None:
                solr = pysolr.Solr(f"{self.base_url}{collection}", timeout=self._timeout)
                self._clients[collection] = solr
            return solr

    # -- SearchEngineBase overrides -------------------------------------------

    def add_documents(self, collection: str, documents: list[dict[str, Any]]) -> None:
        try:
            self.client(collection).add(documents, commit=False)
        except _ENGINE_ERRORS as exc:
            raise SearchEngineError(f"Batch add to {collection!r} failed: {exc}") from exc

    def add_document(self, collection: str, document: dict[str, Any]) -> None:
        try:
            self.client(collection).add([document], commit=False)
        except _ENGINE_ERRORS as exc:
            raise SearchEngineError(f"Add to {collection!r} failed: {exc}") from exc

    def commit(self, collection: str) -> None:
        try:
            self.client(collection).commit()
        except _ENGINE_ERRORS as exc:
            raise CommitError(f"Commit on {collection!r} failed: {exc}") from exc

    def search(self, collection: str, request: SearchRequest) -> SearchResponse:
        query, params = build_search_params(request)
        try:
            results = self.client(collection).search(query, **params)
        except _ENGINE_ERRORS as exc:
            raise SearchEngineError(f"Search on {collection!r} failed: {exc}") from exc

        body = results.raw_response.get("response", {})
        facet_fields = (results.facets or {}).get("facet_fields", {})
        return SearchResponse(
            num_found=results.hits,
            start=body.get("start", 0),
            max_score=body.get("maxScore"),
            documents=list(results.docs),
            facets={name: _pairs_to_counts(values) for name, values in facet_fields.items()},
        )

    def health_check(self, collection: str | None = None) -> bool:
        collection = collection or settings.solr_default_collection
        if not collection:
            logger.warning("Solr health-check skipped: no collection configured")
            return False
        try:
            self.client(collection).ping()
            return True
        except _ENGINE_ERRORS:
            logger.warning("Solr health-check failed for %r", collection, exc_info=True)
            return False
