"""Semantic retriever — metadata-aware search with citation tracking.

This is the read side of the knowledge base that the ingestion pipeline
fills.  It is decoupled from LangChain retriever abstractions so that the
HTTP layer, notebooks and tests can use it directly.

Usage::

    from wellness_rag.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(store)
    results   = retriever.search("Which massages suit pregnant guests?", k=5)
    for r in results:
        print(r.citation.short_ref(), r.content[:80])
"""

from __future__ import annotations

import logging
from typing import Any

from wellness_rag.retrieval.base import VectorStoreBase
from wellness_rag.retrieval.models import Citation, MetadataFilter, RetrievalResult

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Optional minimum similarity score; results below it are discarded.
        ``None`` (the default) returns the top hits unfiltered.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        default_k: int = 5,
        score_threshold: float | None = None,
    ) -> None:
        self._store = store
        self.default_k = default_k
        self.score_threshold = score_threshold

    def search(
        self,
        query: str,
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        """Run a semantic search and return results with citations.

        Parameters
        ----------
        query:
            Natural-language query string.
        k:
            Number of results (defaults to ``self.default_k``).
        filters:
            Optional metadata filters forwarded to the vector store.
        """
        k = k or self.default_k
        raw_hits = self._store.similarity_search_by_text(query, k=k, filters=filters)
        return self._to_results(raw_hits)

    def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        raw_hits = self._store.similarity_search(embedding, k=k, filters=filters)
        return self._to_results(raw_hits)

    def health_check(self) -> bool:
        """Return ``True`` when the underlying store is reachable."""
        return self._store.health_check()

    def _to_results(self, raw_hits: list[dict[str, Any]]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in raw_hits:
            score = hit.get("score")
            if self.score_threshold is not None and score is not None and score < self.score_threshold:
                continue

            meta = hit.get("metadata", {})
            citation = Citation(
                document_id=hit.get("id"),
                source=meta.get("file_name") or meta.get("source", "unknown"),
                row=meta.get("row"),
                score=score,
                metadata=meta,
            )
            results.append(RetrievalResult(content=hit.get("content", ""), citation=citation))
        logger.debug("Retrieved %d of %d hits (threshold %s)", len(results), len(raw_hits), self.score_threshold)
        return results
