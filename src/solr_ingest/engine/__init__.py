"""
Engine: the search engine collaborator behind ingestion and search.

Public surface
--------------
- :class:`SearchEngineBase`: abstract backend (subclass for other engines).
- :class:`SolrSearchEngine`: default Solr backend.
- :class:`SearchRequest`, :class:`SearchResponse`, :class:`IndexOutcome`: data models.
"""

from solr_ingest.engine.base import SearchEngineBase
from solr_ingest.engine.models import IndexOutcome, SearchRequest, SearchResponse

__all__ = [
    "IndexOutcome",
    "SearchEngineBase",
    "SearchRequest",
    "SearchResponse",
    "SolrSearchEngine",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import SolrSearchEngine to avoid pulling in pysolr at import time."""
    if name == "SolrSearchEngine":
        from solr_ingest.engine.solr_store import SolrSearchEngine

        return SolrSearchEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
