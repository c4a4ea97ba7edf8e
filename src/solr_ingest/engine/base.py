"""Abstract base class for search-engine backends.

The indexer and the tools only talk to :class:`SearchEngineBase`, so a new
backend (OpenSearch, Elasticsearch …) only needs to subclass it and
implement the abstract methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from solr_ingest.engine.models import SearchRequest, SearchResponse


class SearchEngineBase(ABC):
    """Backend-agnostic document engine interface.

    Every write method raises on failure; callers decide whether a failure
    is fatal.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add_documents(self, collection: str, documents: list[dict[str, Any]]) -> None:
        """Submit *documents* to *collection* in a single request."""
        ...

    @abstractmethod
    def add_document(self, collection: str, document: dict[str, Any]) -> None:
        """Submit one document to *collection*."""
        ...

    @abstractmethod
    def commit(self, collection: str) -> None:
        """Make pending writes to *collection* durable and searchable."""
        ...

    @abstractmethod
    def search(self, collection: str, request: SearchRequest) -> SearchResponse:
        """Run *request* against *collection*."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self, collection: str | None = None) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
