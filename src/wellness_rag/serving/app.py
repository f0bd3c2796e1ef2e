"""FastAPI application exposing knowledge-base similarity search.

The query route mirrors the ``match_documents`` RPC the chat assistant
calls: ``POST /rpc/<query_name>`` with a query (text or embedding), a
match count and an optional metadata containment filter.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, model_validator

from wellness_rag.config import Settings, load_settings
from wellness_rag.errors import VectorStoreError
from wellness_rag.retrieval.models import MetadataFilter, RetrievalResult
from wellness_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class MatchRequest(BaseModel):
    """Similarity query; exactly one of ``query`` / ``query_embedding``."""

    query: str | None = None
    query_embedding: list[float] | None = None
    match_count: int = Field(default=5, ge=1, le=50)
    filter: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _one_query(self) -> MatchRequest:
        if (self.query is None) == (self.query_embedding is None):
            raise ValueError("provide exactly one of 'query' or 'query_embedding'")
        return self


class MatchedDocument(BaseModel):
    id: str | None
    content: str
    metadata: dict[str, Any]
    similarity: float | None


# ── Dependencies ──────────────────────────────────────────────────────
def get_retriever(request: Request) -> SemanticRetriever:
    """Build the app's retriever (Chroma + OpenAI embeddings) on first use."""
    retriever = getattr(request.app.state, "retriever", None)
    if retriever is None:
        from wellness_rag.ingestion.embedder import get_embedding_function
        from wellness_rag.retrieval.chroma_store import ChromaVectorStore

        settings: Settings = request.app.state.settings
        store = ChromaVectorStore.from_settings(settings, embeddings=get_embedding_function(settings))
        retriever = request.app.state.retriever = SemanticRetriever(store)
    return retriever


def _to_match(result: RetrievalResult) -> MatchedDocument:
    return MatchedDocument(
        id=result.citation.document_id,
        content=result.content,
        metadata=result.citation.metadata,
        similarity=result.citation.score,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API; the query route is named after ``settings.query_name``."""
    settings = settings or load_settings()
    app = FastAPI(
        title="Wellness Knowledge Base API",
        version="0.1.0",
        description="Similarity search over the studio's ingested documents.",
    )
    app.state.settings = settings

    @app.get("/health")
    def health(retriever: SemanticRetriever = Depends(get_retriever)) -> dict[str, str]:
        """Readiness probe; 503 while the vector store is unreachable."""
        if not retriever.health_check():
            raise HTTPException(status_code=503, detail="Vector store unavailable")
        return {"status": "ok"}

    @app.post(f"/rpc/{settings.query_name}", response_model=list[MatchedDocument])
    def match_documents(
        request: MatchRequest,
        retriever: SemanticRetriever = Depends(get_retriever),
    ) -> list[MatchedDocument]:
        """Return the ``match_count`` most similar chunks."""
        filters = MetadataFilter.from_mapping(request.filter) or None
        try:
            if request.query_embedding is not None:
                results = retriever.search_by_embedding(
                    request.query_embedding, k=request.match_count, filters=filters
                )
            else:
                results = retriever.search(request.query, k=request.match_count, filters=filters)
        except VectorStoreError as exc:
            logger.warning("Knowledge-base query failed: %s", exc)
            raise HTTPException(status_code=503, detail="Vector store unavailable") from exc
        return [_to_match(r) for r in results]

    return app


app = create_app()
