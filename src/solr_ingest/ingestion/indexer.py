"""Resilient batch indexing with per-document fallback.

One call moves through three states::

    BATCH_ATTEMPT ──ok──────────────────────► COMMITTED
          │                                      ▲
          └─fail─► FALLBACK (one add per doc) ───┘

A failed batch is never fatal: every document is retried on its own, and
documents that still fail are skipped and only lower the success count.
Exactly one commit is issued per call, even when nothing succeeded.  Only
a failed commit propagates.

Usage::

    from solr_ingest.ingestion.indexer import ResilientBatchIndexer

    indexer = ResilientBatchIndexer()
    count   = indexer.index_json("books", '[{"id": "1", "title": "Dune"}]')
"""

from __future__ import annotations

import enum
import logging

from solr_ingest.engine.base import SearchEngineBase
from solr_ingest.engine.models import IndexOutcome
from solr_ingest.exceptions import CommitError
from solr_ingest.ingestion.flattener import DocumentFlattener, FlatDocument

logger = logging.getLogger(__name__)


class IndexState(str, enum.Enum):
    BATCH_ATTEMPT = "batch_attempt"
    FALLBACK = "fallback"
    COMMITTED = "committed"


_ALLOWED_TRANSITIONS: dict[IndexState, frozenset[IndexState]] = {
    IndexState.BATCH_ATTEMPT: frozenset({IndexState.FALLBACK, IndexState.COMMITTED}),
    IndexState.FALLBACK: frozenset({IndexState.COMMITTED}),
    IndexState.COMMITTED: frozenset(),
}


class ResilientBatchIndexer:
    """Submit flat documents to a collection, degrading to one-by-one adds.

    Parameters
    ----------
    engine:
        A concrete engine backend.  When *None*, a default
        :class:`~solr_ingest.engine.solr_store.SolrSearchEngine` is
        created from the global settings.
    flattener:
        Flattener used by :meth:`index_json`.
    """

    def __init__(
        self,
        engine: SearchEngineBase | None = None,
        *,
        flattener: DocumentFlattener | None = None,
    ) -> None:
        if engine is None:
            from solr_ingest.engine.solr_store import SolrSearchEngine

            engine = SolrSearchEngine()
        self._engine = engine
        self._flattener = flattener or DocumentFlattener()

    # -- public API -----------------------------------------------------------

    def index_json(self, collection: str, json_text: str | bytes) -> int:
        """Flatten *json_text* and index the resulting documents.

        Raises
        ------
        JsonParseError
            *json_text* is malformed; nothing is submitted.
        NestingDepthError, ValueOutOfRangeError
            A record cannot be flattened; nothing is submitted.
        CommitError
            The final commit failed.
        """
        return self.run_json(collection, json_text).succeeded

    def index_documents(self, collection: str, documents: list[FlatDocument]) -> int:
        """Index *documents* and return how many the engine accepted."""
        return self.run(collection, documents).succeeded

    def run_json(self, collection: str, json_text: str | bytes) -> IndexOutcome:
        """Like :meth:`index_json`, returning the full :class:`IndexOutcome`."""
        documents = self._flattener.flatten(json_text)
        return self.run(collection, documents)

    def run(self, collection: str, documents: list[FlatDocument]) -> IndexOutcome:
        """Run the batch → fallback → commit protocol.

        Returns
        -------
        IndexOutcome
            Submitted and accepted counts, and whether the fallback ran.
        """
        if not collection or not collection.strip():
            raise ValueError("collection must be a non-empty string")

        outcome = IndexOutcome(collection=collection, submitted=len(documents))
        state = IndexState.BATCH_ATTEMPT

        if documents:
            try:
                self._engine.add_documents(collection, documents)
                outcome.succeeded = len(documents)
                logger.info("Batch of %d documents accepted by %r", len(documents), collection)
            except Exception as exc:
                state = self._transition(collection, state, IndexState.FALLBACK)
                logger.warning(
                    "Batch add of %d documents to %r failed (%s); retrying individually",
                    len(documents),
                    collection,
                    exc,
                )

        if state is IndexState.FALLBACK:
            outcome.used_fallback = True
            outcome.succeeded = self._index_individually(collection, documents)

        try:
            self._engine.commit(collection)
        except CommitError:
            raise
        except Exception as exc:
            raise CommitError(f"Commit on {collection!r} failed: {exc}") from exc
        state = self._transition(collection, state, IndexState.COMMITTED)
        logger.info(
            "Committed %r: %d/%d documents indexed (%s)",
            collection,
            outcome.succeeded,
            outcome.submitted,
            "fallback" if outcome.used_fallback else "batch",
        )
        return outcome

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _transition(collection: str, current: IndexState, new: IndexState) -> IndexState:
        if new not in _ALLOWED_TRANSITIONS[current]:
            raise RuntimeError(f"Invalid indexing transition {current.value} -> {new.value}")
        logger.debug("Indexing %r: %s -> %s", collection, current.value, new.value)
        return new

    def _index_individually(self, collection: str, documents: list[FlatDocument]) -> int:
        succeeded = 0
        for position, document in enumerate(documents):
            try:
                self._engine.add_document(collection, document)
                succeeded += 1
            except Exception as exc:
                logger.warning(
                    "Skipping document %d (id=%r) in %r: %s",
                    position,
                    document.get("id"),
                    collection,
                    exc,
                )
                logger.debug("Document %d failure detail", position, exc_info=True)
        return succeeded
