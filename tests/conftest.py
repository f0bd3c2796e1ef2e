"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from wellness_rag.errors import StoreWriteError
from wellness_rag.retrieval.base import VectorStoreBase
from wellness_rag.retrieval.models import MetadataFilter, StoredRecord

EMBEDDING_SIZE = 8


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store that records every call it receives."""

    def __init__(self, records: Sequence[StoredRecord] = ()) -> None:
        super().__init__("documents")
        self.records: dict[str, StoredRecord] = {r.id: r for r in records}
        self.calls: list[str] = []
        self._embedder = DeterministicFakeEmbedding(size=EMBEDDING_SIZE)

    def count(self) -> int:
        self.calls.append("count")
        return len(self.records)

    def delete_all(self) -> int:
        self.calls.append("delete_all")
        deleted = len(self.records)
        self.records.clear()
        return deleted

    def bulk_insert(self, records: Sequence[StoredRecord]) -> None:
        self.calls.append("bulk_insert")
        for record in records:
            if record.id in self.records:
                raise StoreWriteError(f"duplicate id {record.id}")
            self.records[record.id] = record

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        hits = []
        for record in self.records.values():
            if filters and not all(record.metadata.get(f.field) == f.value for f in filters):
                continue
            hits.append(
                {
                    "id": record.id,
                    "content": record.content,
                    "score": _cosine(query_embedding, record.embedding),
                    "metadata": record.metadata,
                }
            )
        hits.sort(key=lambda h: h["score"], reverse=True)
        return hits[:k]

    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        return self.similarity_search(self._embedder.embed_query(query), k=k, filters=filters)

    def health_check(self) -> bool:
        return True

    @property
    def mutations(self) -> list[str]:
        return [c for c in self.calls if c in ("delete_all", "bulk_insert")]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=EMBEDDING_SIZE)


@pytest.fixture()
def make_source_dir(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Return a factory writing ``{file_name: content}`` into a fresh directory."""

    def _make(files: dict[str, str | bytes]) -> Path:
        root = tmp_path / "text_csv"
        root.mkdir(exist_ok=True)
        for name, content in files.items():
            path = root / name
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _make


def csv_rows(count: int, width: int = 100) -> str:
    """A header plus *count* data rows, each row exactly *width* characters."""
    lines = ["service,description"]
    for i in range(count):
        prefix = f"service-{i},"
        lines.append(prefix + "d" * (width - len(prefix)))
    return "\n".join(lines) + "\n"
