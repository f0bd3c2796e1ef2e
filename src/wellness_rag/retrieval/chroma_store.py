"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from wellness_rag.errors import StoreUnavailableError, StoreWriteError
from wellness_rag.retrieval.base import VectorStoreBase
from wellness_rag.retrieval.models import MetadataFilter, StoredRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from wellness_rag.config import Settings

logger = logging.getLogger(__name__)

_DELETE_PAGE_SIZE = 1000


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "gt": "$gt",
        "gte": "$gte",
        "lt": "$lt",
        "lte": "$lte",
        "in": "$in",
        "nin": "$nin",
    }

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flat_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    # Chroma metadata values must be flat str/int/float/bool
    return {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    The HTTP client is created on first use, so constructing the store
    performs no I/O.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host / port / ssl:
        Chroma server location.
    api_key:
        Token sent as ``Authorization: Bearer <key>``; omitted when empty.
    embeddings:
        Embedding function used by :meth:`similarity_search_by_text`.
    """

    def __init__(
        self,
        collection_name: str = "documents",
        *,
        host: str = "localhost",
        port: int = 8000,
        ssl: bool = False,
        api_key: str | None = None,
        embeddings: Embeddings | None = None,
    ) -> None:
        super().__init__(collection_name)
        self._host = host
        self._port = port
        self._ssl = ssl
        self._api_key = api_key
        self._embedder = embeddings
        self._client: Any = None
        self._collection: Any = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embeddings: Embeddings | None = None,
    ) -> ChromaVectorStore:
        key = settings.vector_store_key
        return cls(
            settings.collection_name,
            host=settings.chroma_host,
            port=settings.chroma_port,
            ssl=settings.chroma_ssl,
            api_key=key.get_secret_value() if key is not None else None,
            embeddings=embeddings,
        )

    # -- connection -----------------------------------------------------------

    def _get_client(self) -> Any:
        if self._client is None:
            import chromadb

            headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
            self._client = chromadb.HttpClient(
                host=self._host,
                port=self._port,
                ssl=self._ssl,
                headers=headers,
            )
        return self._client

    def _get_collection(self) -> Any:
        if self._collection is None:
            self._collection = self._get_client().get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    # -- write side -----------------------------------------------------------

    def count(self) -> int:
        try:
            return int(self._get_collection().count())
        except Exception as exc:
            raise StoreUnavailableError(
                f"Could not count records in {self.collection_name!r}: {exc}"
            ) from exc

    def delete_all(self) -> int:
        deleted = 0
        try:
            collection = self._get_collection()
            while True:
                ids = collection.get(limit=_DELETE_PAGE_SIZE, include=[])["ids"]
                if not ids:
                    break
                collection.delete(ids=ids)
                deleted += len(ids)
        except Exception as exc:
            raise StoreUnavailableError(
                f"Could not delete records from {self.collection_name!r} "
                f"after removing {deleted}: {exc}"
            ) from exc
        return deleted

    def bulk_insert(self, records: Sequence[StoredRecord]) -> None:
        if not records:
            return
        try:
            self._get_collection().add(
                ids=[r.id for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.content for r in records],
                metadatas=[_flat_metadata(r.metadata) for r in records],
            )
        except Exception as exc:
            raise StoreWriteError(
                f"Bulk insert of {len(records)} records into {self.collection_name!r} failed: {exc}"
            ) from exc

    # -- read side ------------------------------------------------------------

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        where = _build_chroma_where(filters) if filters else None

        try:
            results = self._get_collection().query(
                query_embeddings=[query_embedding],
                n_results=k,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreUnavailableError(f"Query against {self.collection_name!r} failed: {exc}") from exc

        hits: list[dict[str, Any]] = []
        ids = results.get("ids", [[]])[0]
        docs = results.get("documents", [[]])[0]
        metas = results.get("metadatas", [[]])[0]
        distances = results.get("distances", [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: similarity is 1 - distance.
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    "score": 1.0 - dist,
                    "metadata": meta or {},
                }
            )
        return hits

    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        if self._embedder is None:
            raise ValueError("ChromaVectorStore was created without an embedding function")
        embedding = self._embedder.embed_query(query)
        return self.similarity_search(embedding, k=k, filters=filters)

    def health_check(self) -> bool:
        try:
            self._get_client().heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
