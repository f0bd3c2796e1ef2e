"""
Retrieval — vector-store access for both loading and querying the knowledge base.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend (count, delete_all, bulk_insert, search).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`SemanticRetriever` — similarity search returning results with citations.
- :class:`StoredRecord`, :class:`Citation`, :class:`RetrievalResult`,
  :class:`MetadataFilter` — data models.
"""

from wellness_rag.retrieval.base import VectorStoreBase
from wellness_rag.retrieval.models import Citation, MetadataFilter, RetrievalResult, StoredRecord
from wellness_rag.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "MetadataFilter",
    "RetrievalResult",
    "SemanticRetriever",
    "StoredRecord",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore so its backend only loads when used."""
    if name == "ChromaVectorStore":
        from wellness_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
