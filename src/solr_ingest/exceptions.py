"""Exception hierarchy for the ingestion pipeline.

Only three kinds of failure ever reach a caller of the indexer: malformed
input (:class:`JsonParseError`, :class:`NestingDepthError`,
:class:`ValueOutOfRangeError`), and a failed commit (:class:`CommitError`).
Submission failures are absorbed into the success count.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for every error raised by :mod:`solr_ingest`."""


class JsonParseError(IngestionError, ValueError):
    """Input text is not syntactically valid JSON."""


class NestingDepthError(IngestionError, ValueError):
    """A JSON structure is nested deeper than the configured limit."""

    def __init__(self, max_depth: int, path: str) -> None:
        super().__init__(f"JSON nesting exceeds max depth {max_depth} at {path!r}")
        self.max_depth = max_depth
        self.path = path


class ValueOutOfRangeError(IngestionError, ValueError):
    """A number cannot be represented as a 64-bit integer or finite double."""


class SearchEngineError(IngestionError):
    """The search engine rejected a request or could not be reached."""


class CommitError(SearchEngineError):
    """A commit failed; prior writes are not guaranteed to be visible."""
