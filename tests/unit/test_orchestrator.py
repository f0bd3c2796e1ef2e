"""Unit tests for the batch orchestrator and the reset guard."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import EMBEDDING_SIZE, InMemoryVectorStore, csv_rows
from langchain_core.embeddings import DeterministicFakeEmbedding

from wellness_rag.errors import (
    BatchFailedError,
    DirectoryNotFoundError,
    EmbeddingServiceError,
    ParseError,
    StoreUnavailableError,
)
from wellness_rag.ingestion.embedder import EmbeddingSink
from wellness_rag.ingestion.orchestrator import BatchOrchestrator, RunState
from wellness_rag.ingestion.reset import ResetGuard
from wellness_rag.retrieval.models import StoredRecord


class _FailOnCall(DeterministicFakeEmbedding):
    """Fake embeddings that raise an auth error on the N-th batch call."""

    fail_on: int = 1
    calls: int = 0

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        call = self.calls
        self.calls += 1
        if call == self.fail_on:
            raise PermissionError("401 Incorrect API key provided")
        return super().embed_documents(texts)


class _Sleeper:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _seed(store: InMemoryVectorStore, n: int) -> None:
    for i in range(n):
        store.records[f"old-{i}"] = StoredRecord(id=f"old-{i}", content="stale", embedding=[0.0] * EMBEDDING_SIZE)


def _orchestrator(data_dir: Path, store: InMemoryVectorStore, embeddings=None, **kwargs) -> BatchOrchestrator:
    if embeddings is None:
        embeddings = DeterministicFakeEmbedding(size=EMBEDDING_SIZE)
    kwargs.setdefault("sleep", _Sleeper())
    return BatchOrchestrator(
        data_dir=data_dir,
        store=store,
        sink=EmbeddingSink(embeddings, store, expected_dimensions=EMBEDDING_SIZE),
        **kwargs,
    )


def _nine_files() -> dict[str, str]:
    return {f"doc{i}.txt": f"Treatment {i}. " * 20 for i in range(9)}


class TestScenarios:
    def test_single_batch_text_and_csv(self, make_source_dir, store) -> None:
        root = make_source_dir({"a.txt": "a" * 500, "b.csv": csv_rows(2, width=100)})

        summary = _orchestrator(root, store).run()

        assert summary.total_files == 2
        assert summary.total_documents == 3
        (result,) = summary.results
        assert result.files == ["a.txt", "b.csv"]
        assert result.chunk_count >= 3
        assert len(store.records) == result.chunk_count
        by_file = {r.metadata["file_name"] for r in store.records.values()}
        assert by_file == {"a.txt", "b.csv"}

    def test_auth_failure_on_second_batch_keeps_first(self, make_source_dir, store) -> None:
        root = make_source_dir(_nine_files())
        sleeper = _Sleeper()
        orchestrator = _orchestrator(root, store, embeddings=_FailOnCall(size=EMBEDDING_SIZE), sleep=sleeper)

        with pytest.raises(BatchFailedError) as excinfo:
            orchestrator.run()

        assert excinfo.value.batch_index == 1
        assert isinstance(excinfo.value.__cause__, EmbeddingServiceError)
        assert orchestrator.state is RunState.FAILED
        assert [r.batch_index for r in orchestrator.results] == [0]
        # no rollback of batch 0
        assert {r.metadata["file_name"] for r in store.records.values()} == {"doc0.txt", "doc1.txt", "doc2.txt"}
        assert sleeper.calls == [2.0]

    def test_missing_directory_touches_nothing(self, tmp_path: Path, store) -> None:
        orchestrator = _orchestrator(tmp_path / "missing", store)

        with pytest.raises(DirectoryNotFoundError):
            orchestrator.run()

        assert store.calls == []
        assert orchestrator.state is RunState.FAILED

    def test_rerun_replaces_previous_records(self, make_source_dir, store) -> None:
        root = make_source_dir(_nine_files())

        first = _orchestrator(root, store).run()
        first_ids = set(store.records)
        second = _orchestrator(root, store).run()

        assert second.total_chunks == first.total_chunks
        assert set(store.records) == first_ids
        assert len(store.records) == second.total_chunks
        assert store.calls.count("delete_all") == 1

    def test_long_paragraph_before_blank_line_stores_no_blank_record(self, make_source_dir, store) -> None:
        para = "Aroma oils are blended to order for every guest. "
        root = make_source_dir({"rituals.txt": f"{para * 40}\n\n{para * 40}"})

        summary = _orchestrator(root, store).run()

        assert all(r.content.strip() for r in store.records.values())
        assert len(store.records) == summary.total_chunks


class TestBatching:
    def test_nine_files_make_three_paced_batches(self, make_source_dir, store) -> None:
        root = make_source_dir(_nine_files())
        sleeper = _Sleeper()

        orchestrator = _orchestrator(root, store, sleep=sleeper)
        summary = orchestrator.run()

        assert [r.file_count for r in summary.results] == [3, 3, 3]
        assert summary.total_files == 9
        assert sleeper.calls == [2.0, 2.0]
        assert orchestrator.state is RunState.COMPLETED

    def test_fixed_batch_count_beyond_files_is_zero_work(self, make_source_dir, store) -> None:
        root = make_source_dir({f"f{i}.txt": "Spa day." for i in range(4)})

        summary = _orchestrator(root, store, total_batches=5).run()

        assert [r.file_count for r in summary.results] == [3, 1, 0, 0, 0]
        for result in summary.results[2:]:
            assert (result.document_count, result.chunk_count) == (0, 0)
        assert store.mutations == ["bulk_insert", "bulk_insert"]

    def test_empty_directory_completes_without_store_calls(self, make_source_dir, store) -> None:
        orchestrator = _orchestrator(make_source_dir({}), store)

        summary = orchestrator.run()

        assert summary.results == []
        assert store.calls == []
        assert orchestrator.state is RunState.COMPLETED

    def test_no_delay_configured(self, make_source_dir, store) -> None:
        root = make_source_dir(_nine_files())
        sleeper = _Sleeper()
        _orchestrator(root, store, sleep=sleeper, batch_delay_seconds=0).run()
        assert sleeper.calls == []


class TestResetGuard:
    def test_reset_runs_once_before_first_batch(self, make_source_dir, store) -> None:
        _seed(store, 5)
        root = make_source_dir(_nine_files())

        summary = _orchestrator(root, store).run()

        assert store.calls[:2] == ["count", "delete_all"]
        assert store.calls.count("count") == 1
        assert store.calls.count("delete_all") == 1
        assert summary.results[0].deleted_records == 5
        assert not any(k.startswith("old-") for k in store.records)

    def test_empty_store_is_not_deleted(self, make_source_dir, store) -> None:
        _orchestrator(make_source_dir({"a.txt": "hello"}), store).run()
        assert store.calls == ["count", "bulk_insert"]

    def test_resume_never_resets(self, make_source_dir, store) -> None:
        _seed(store, 2)
        root = make_source_dir(_nine_files())

        summary = _orchestrator(root, store).run(start_batch=1)

        assert [r.batch_index for r in summary.results] == [1, 2]
        assert "count" not in store.calls
        assert "delete_all" not in store.calls
        assert "old-0" in store.records

    def test_store_unavailable_is_fatal(self, make_source_dir, store, monkeypatch) -> None:
        def _down() -> int:
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(store, "count", _down)
        root = make_source_dir({"a.txt": "hello"})

        with pytest.raises(BatchFailedError) as excinfo:
            _orchestrator(root, store).run()

        assert excinfo.value.batch_index == 0
        assert isinstance(excinfo.value.__cause__, StoreUnavailableError)
        assert store.records == {}

    def test_guard_fires_only_once(self, store) -> None:
        guard = ResetGuard(store)
        assert guard.applies_to(0)
        assert not guard.applies_to(1)
        guard.reset()
        assert not guard.applies_to(0)


def test_parse_error_aborts_batch(make_source_dir, store) -> None:
    root = make_source_dir({"a.txt": "fine", "b.txt": b"\xff\xfe broken"})

    with pytest.raises(BatchFailedError) as excinfo:
        _orchestrator(root, store).run()

    assert isinstance(excinfo.value.__cause__, ParseError)
    assert excinfo.value.__cause__.file_name == "b.txt"
    assert "bulk_insert" not in store.calls


def test_negative_start_batch_rejected(make_source_dir, store) -> None:
    with pytest.raises(ValueError, match="start_batch"):
        _orchestrator(make_source_dir({}), store).run(start_batch=-1)
