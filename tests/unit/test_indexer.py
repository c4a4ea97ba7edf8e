"""Unit tests for the resilient batch indexer.

All tests run without Solr by injecting a fake engine or a
``MagicMock(spec=SearchEngineBase)``.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, call

import pytest

from solr_ingest.engine.base import SearchEngineBase
from solr_ingest.engine.models import SearchRequest, SearchResponse
from solr_ingest.exceptions import CommitError, JsonParseError, SearchEngineError, ValueOutOfRangeError
from solr_ingest.ingestion.flattener import DocumentFlattener
from solr_ingest.ingestion.indexer import IndexState, ResilientBatchIndexer


# ── Fake engine for deterministic testing ──────────────────────────────


class FakeSearchEngine(SearchEngineBase):
    """In-memory engine that records every call and fails on demand."""

    def __init__(
        self,
        *,
        fail_batch: bool = False,
        fail_ids: set[str] | None = None,
        fail_commit: bool = False,
    ) -> None:
        self.fail_batch = fail_batch
        self.fail_ids = fail_ids or set()
        self.fail_commit = fail_commit
        self.batch_calls: list[tuple[str, list[dict[str, Any]]]] = []
        self.single_calls: list[tuple[str, dict[str, Any]]] = []
        self.commits: list[str] = []
        self.stored: dict[str, list[dict[str, Any]]] = {}
        self.committed: dict[str, list[dict[str, Any]]] = {}

    def add_documents(self, collection: str, documents: list[dict[str, Any]]) -> None:
        self.batch_calls.append((collection, documents))
        if self.fail_batch:
            raise SearchEngineError("Batch indexing failed")
        self.stored.setdefault(collection, []).extend(documents)

    def add_document(self, collection: str, document: dict[str, Any]) -> None:
        self.single_calls.append((collection, document))
        if document.get("id") in self.fail_ids:
            raise SearchEngineError(f"Document {document['id']} indexing failed")
        self.stored.setdefault(collection, []).append(document)

    def commit(self, collection: str) -> None:
        self.commits.append(collection)
        if self.fail_commit:
            raise CommitError("commit rejected")
        self.committed[collection] = list(self.stored.get(collection, []))

    def search(self, collection: str, request: SearchRequest) -> SearchResponse:
        docs = self.committed.get(collection, [])
        return SearchResponse(num_found=len(docs), documents=docs)


def _make_docs(n: int = 10) -> list[dict[str, Any]]:
    return [{"id": f"test{i}", "title": f"Test Document {i}"} for i in range(n)]


# ── Batch path ─────────────────────────────────────────────────────────


class TestBatchPath:
    def test_batch_success_counts_all(self) -> None:
        engine = FakeSearchEngine()
        indexer = ResilientBatchIndexer(engine)
        assert indexer.index_documents("test_collection", _make_docs()) == 10
        assert len(engine.batch_calls) == 1
        assert engine.single_calls == []
        assert engine.commits == ["test_collection"]

    def test_outcome_reports_batch_path(self) -> None:
        outcome = ResilientBatchIndexer(FakeSearchEngine()).run("books", _make_docs(3))
        assert outcome.collection == "books"
        assert outcome.submitted == 3
        assert outcome.succeeded == 3
        assert outcome.failed == 0
        assert outcome.used_fallback is False

    def test_documents_not_mutated(self) -> None:
        docs = _make_docs(2)
        snapshot = [dict(d) for d in docs]
        ResilientBatchIndexer(FakeSearchEngine(fail_batch=True)).index_documents("c", docs)
        assert docs == snapshot


# ── Fallback path ──────────────────────────────────────────────────────


class TestFallbackPath:
    def test_all_individual_adds_succeed(self) -> None:
        engine = FakeSearchEngine(fail_batch=True)
        count = ResilientBatchIndexer(engine).index_documents("test_collection", _make_docs())
        assert count == 10
        assert len(engine.batch_calls) == 1
        assert len(engine.single_calls) == 10
        assert engine.commits == ["test_collection"]

    def test_partial_failure_counts_even_documents(self) -> None:
        docs = _make_docs()
        odd_ids = {d["id"] for i, d in enumerate(docs) if i % 2 == 1}
        engine = FakeSearchEngine(fail_batch=True, fail_ids=odd_ids)

        outcome = ResilientBatchIndexer(engine).run("test_collection", docs)

        assert outcome.succeeded == 5
        assert outcome.failed == 5
        assert outcome.used_fallback is True
        assert len(engine.batch_calls) == 1
        assert [doc for _, doc in engine.single_calls] == docs
        assert engine.commits == ["test_collection"]
        assert [d["id"] for d in engine.committed["test_collection"]] == [
            "test0",
            "test2",
            "test4",
            "test6",
            "test8",
        ]

    def test_everything_fails_still_commits(self) -> None:
        docs = _make_docs(4)
        engine = FakeSearchEngine(fail_batch=True, fail_ids={d["id"] for d in docs})
        assert ResilientBatchIndexer(engine).index_documents("c", docs) == 0
        assert engine.commits == ["c"]

    def test_any_exception_triggers_fallback(self) -> None:
        engine = MagicMock(spec=SearchEngineBase)
        engine.add_documents.side_effect = RuntimeError("connection reset")
        docs = _make_docs(3)

        assert ResilientBatchIndexer(engine).index_documents("c", docs) == 3
        engine.add_document.assert_has_calls([call("c", d) for d in docs])
        engine.commit.assert_called_once_with("c")

    def test_mock_even_index_success(self) -> None:
        engine = MagicMock(spec=SearchEngineBase)
        engine.add_documents.side_effect = RuntimeError("Batch indexing failed")
        docs = _make_docs()

        def add_one(collection: str, document: dict[str, Any]) -> None:
            if docs.index(document) % 2:
                raise RuntimeError("rejected")

        engine.add_document.side_effect = add_one

        assert ResilientBatchIndexer(engine).index_documents("test_collection", docs) == 5
        engine.add_documents.assert_called_once_with("test_collection", docs)
        assert engine.add_document.call_count == 10
        engine.commit.assert_called_once_with("test_collection")


# ── State transitions ──────────────────────────────────────────────────


class TestStateTransitions:
    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (IndexState.BATCH_ATTEMPT, IndexState.FALLBACK),
            (IndexState.BATCH_ATTEMPT, IndexState.COMMITTED),
            (IndexState.FALLBACK, IndexState.COMMITTED),
        ],
    )
    def test_allowed_transitions(self, current: IndexState, new: IndexState) -> None:
        assert ResilientBatchIndexer._transition("c", current, new) is new

    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (IndexState.FALLBACK, IndexState.BATCH_ATTEMPT),
            (IndexState.FALLBACK, IndexState.FALLBACK),
            (IndexState.COMMITTED, IndexState.FALLBACK),
            (IndexState.COMMITTED, IndexState.COMMITTED),
            (IndexState.BATCH_ATTEMPT, IndexState.BATCH_ATTEMPT),
        ],
    )
    def test_invalid_transitions_rejected(self, current: IndexState, new: IndexState) -> None:
        with pytest.raises(RuntimeError, match="Invalid indexing transition"):
            ResilientBatchIndexer._transition("c", current, new)


# ── Commit and argument handling ───────────────────────────────────────


class TestCommit:
    def test_commit_failure_propagates(self) -> None:
        engine = FakeSearchEngine(fail_commit=True)
        with pytest.raises(CommitError):
            ResilientBatchIndexer(engine).index_documents("c", _make_docs(2))

    def test_generic_commit_failure_wrapped(self) -> None:
        engine = MagicMock(spec=SearchEngineBase)
        engine.commit.side_effect = OSError("socket closed")
        with pytest.raises(CommitError) as info:
            ResilientBatchIndexer(engine).index_documents("c", _make_docs(1))
        assert isinstance(info.value.__cause__, OSError)

    def test_empty_list_commits_without_submitting(self) -> None:
        engine = FakeSearchEngine()
        assert ResilientBatchIndexer(engine).index_documents("c", []) == 0
        assert engine.batch_calls == []
        assert engine.single_calls == []
        assert engine.commits == ["c"]

    @pytest.mark.parametrize("collection", ["", "   "])
    def test_blank_collection_rejected(self, collection: str) -> None:
        engine = FakeSearchEngine()
        with pytest.raises(ValueError):
            ResilientBatchIndexer(engine).index_documents(collection, _make_docs(1))
        assert engine.commits == []


# ── JSON entry point ───────────────────────────────────────────────────


class TestIndexJson:
    def test_flattens_then_indexes(self) -> None:
        engine = FakeSearchEngine()
        text = """
        [
          {"id": "test001", "title": "Test Document 1", "meta": {"Author-Name": "A"}},
          {"id": "test002", "title": "Test Document 2", "long_value": 9223372036854775807}
        ]
        """
        assert ResilientBatchIndexer(engine).index_json("test_collection", text) == 2
        _, submitted = engine.batch_calls[0]
        assert submitted[0] == {"id": "test001", "title": "Test Document 1", "meta_author_name": "A"}
        assert submitted[1]["long_value"] == 9223372036854775807

    def test_long_survives_round_trip(self) -> None:
        engine = FakeSearchEngine()
        ResilientBatchIndexer(engine).index_json("c", '[{"id": "l1", "long_value": 9223372036854775807}]')
        response = engine.search("c", SearchRequest(query="id:l1"))
        assert response.documents[0]["long_value"] == 9223372036854775807

    def test_parse_error_prevents_submission(self) -> None:
        engine = FakeSearchEngine()
        with pytest.raises(JsonParseError):
            ResilientBatchIndexer(engine).index_json("c", "{ This is not valid JSON }")
        assert engine.batch_calls == []
        assert engine.commits == []

    def test_oversized_integer_prevents_submission(self) -> None:
        engine = FakeSearchEngine()
        with pytest.raises(ValueOutOfRangeError):
            ResilientBatchIndexer(engine).index_json("c", '[{"id": "big", "n": ' + "1" * 5000 + "}]")
        assert engine.batch_calls == []
        assert engine.commits == []

    def test_wrong_shape_commits_nothing_new(self) -> None:
        engine = FakeSearchEngine()
        assert ResilientBatchIndexer(engine).index_json("c", '{"id": "solo"}') == 0
        assert engine.batch_calls == []
        assert engine.commits == ["c"]

    def test_custom_flattener_used(self) -> None:
        engine = FakeSearchEngine()
        indexer = ResilientBatchIndexer(engine, flattener=DocumentFlattener(index_object_arrays=True))
        indexer.index_json("c", '[{"id": "x", "authors": [{"name": "One"}]}]')
        assert engine.batch_calls[0][1] == [{"id": "x", "authors_0_name": "One"}]

    def test_run_json_returns_outcome(self) -> None:
        engine = FakeSearchEngine(fail_batch=True, fail_ids={"b"})
        outcome = ResilientBatchIndexer(engine).run_json("c", '[{"id": "a"}, {"id": "b"}]')
        assert (outcome.submitted, outcome.succeeded, outcome.used_fallback) == (2, 1, True)
