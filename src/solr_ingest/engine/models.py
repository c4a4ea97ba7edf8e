"""Request/response models exchanged with the search engine."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Parameters of a collection search.

    Attributes
    ----------
    query:
        Solr ``q`` parameter.  Empty or missing means ``*:*``.
    filter_queries:
        Solr ``fq`` parameters.
    facet_fields:
        Fields to facet on.  Facets are sorted by count and only values
        with at least one hit are returned.
    sort_clauses:
        Sort clauses such as ``"price asc"``; joined with ``,``.
    start:
        Offset of the first result.
    rows:
        Number of results to return.
    """

    query: str | None = None
    filter_queries: list[str] | None = None
    facet_fields: list[str] | None = None
    sort_clauses: list[str] | None = None
    start: int | None = Field(default=None, ge=0)
    rows: int | None = Field(default=None, ge=0)


class SearchResponse(BaseModel):
    """Documents and facet counts returned by a search."""

    num_found: int = 0
    start: int = 0
    max_score: float | None = None
    documents: list[dict[str, Any]] = Field(default_factory=list)
    facets: dict[str, dict[str, int]] = Field(default_factory=dict)


class IndexOutcome(BaseModel):
    """Result of one indexing call.

    ``succeeded`` counts documents the engine accepted, whether through
    the batch path or the per-document fallback.
    """

    collection: str
    submitted: int = 0
    succeeded: int = 0
    used_fallback: bool = False

    @property
    def failed(self) -> int:
        return self.submitted - self.succeeded
