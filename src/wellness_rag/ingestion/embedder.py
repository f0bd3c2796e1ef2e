"""Embedding and vector-store persistence."""

from __future__ import annotations

import hashlib
import logging
import time
from collections import Counter
from typing import TYPE_CHECKING, Sequence

import openai
from langchain_openai import OpenAIEmbeddings

from wellness_rag.errors import EmbeddingServiceError, EmbeddingTimeoutError
from wellness_rag.retrieval.models import StoredRecord

if TYPE_CHECKING:
    from langchain_core.documents import Document
    from langchain_core.embeddings import Embeddings

    from wellness_rag.config import Settings
    from wellness_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def get_embedding_function(settings: Settings) -> OpenAIEmbeddings:
    """Return the configured OpenAI embedding client.

    The client gets an explicit per-request timeout and the configured
    retry count (0 by default), so a slow or failing service surfaces as
    an error instead of hanging the batch.
    """
    return OpenAIEmbeddings(
        model=settings.embedding_model,
        api_key=settings.openai_api_key,
        timeout=settings.request_timeout_seconds,
        max_retries=settings.embedding_max_retries,
    )


def record_id(metadata: dict, ordinal: int) -> str:
    """Deterministic record ID from a chunk's origin and its position in it."""
    row = metadata.get("row", "-")
    key = f"{metadata.get('source', '')}:{row}:{ordinal}"
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class EmbeddingSink:
    """Embed chunks and bulk-insert them into a vector store.

    Parameters
    ----------
    embeddings:
        LangChain embedding function (OpenAI in production).
    store:
        Target vector-store backend.
    expected_dimensions:
        When set, every returned vector must have exactly this length.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: VectorStoreBase,
        *,
        expected_dimensions: int | None = None,
    ) -> None:
        self._embeddings = embeddings
        self._store = store
        self._expected_dimensions = expected_dimensions

    def write(self, chunks: Sequence[Document]) -> int:
        """Embed *chunks* and store them with one bulk insert.

        Returns the number of records written.

        Raises
        ------
        EmbeddingServiceError
            The embedding call failed or returned an unusable payload.
        StoreWriteError
            The bulk insert failed (raised by the store backend).
        """
        if not chunks:
            return 0

        vectors = self._embed([c.page_content for c in chunks])
        records = self._build_records(chunks, vectors)

        t0 = time.monotonic()
        self._store.bulk_insert(records)
        logger.info(
            "Stored %d records in %r in %.1fs",
            len(records), self._store.collection_name, time.monotonic() - t0,
        )
        return len(records)

    def _embed(self, texts: list[str]) -> list[list[float]]:
        logger.info("Embedding %d chunks", len(texts))
        t0 = time.monotonic()
        try:
            vectors = self._embeddings.embed_documents(texts)
        except (openai.APITimeoutError, TimeoutError) as exc:
            raise EmbeddingTimeoutError(f"Embedding request timed out: {exc}") from exc
        except Exception as exc:
            raise EmbeddingServiceError(f"Embedding request failed: {exc}") from exc

        if len(vectors) != len(texts):
            raise EmbeddingServiceError(
                f"Invalid embeddings payload: expected {len(texts)} vectors, got {len(vectors)}"
            )
        if self._expected_dimensions is not None:
            for vector in vectors:
                if len(vector) != self._expected_dimensions:
                    raise EmbeddingServiceError(
                        f"Invalid embeddings payload: expected dimension "
                        f"{self._expected_dimensions}, got {len(vector)}"
                    )
        logger.info("Embedding complete: %d vectors in %.1fs", len(vectors), time.monotonic() - t0)
        return [[float(v) for v in vector] for vector in vectors]

    @staticmethod
    def _build_records(
        chunks: Sequence[Document],
        vectors: list[list[float]],
    ) -> list[StoredRecord]:
        ordinals: Counter[tuple[str, str]] = Counter()
        records: list[StoredRecord] = []
        for chunk, vector in zip(chunks, vectors):
            origin = (str(chunk.metadata.get("source", "")), str(chunk.metadata.get("row", "-")))
            ordinal = ordinals[origin]
            ordinals[origin] += 1
            records.append(
                StoredRecord(
                    id=record_id(chunk.metadata, ordinal),
                    content=chunk.page_content,
                    embedding=vector,
                    metadata=dict(chunk.metadata),
                )
            )
        return records
