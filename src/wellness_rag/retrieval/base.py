"""Abstract base class for vector-store backends.

Adding a new backend (pgvector, Qdrant …) only requires subclassing
:class:`VectorStoreBase` and implementing the abstract methods.  The
ingestion pipeline and the retriever are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from wellness_rag.retrieval.models import MetadataFilter, StoredRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface bound to one collection.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / table holding the records.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- write side -----------------------------------------------------------

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records.

        Raises :class:`~wellness_rag.errors.StoreUnavailableError` when the
        backend cannot be reached.
        """
        ...

    @abstractmethod
    def delete_all(self) -> int:
        """Delete every stored record and return how many were removed.

        Raises :class:`~wellness_rag.errors.StoreUnavailableError` if the
        deletion cannot complete.
        """
        ...

    @abstractmethod
    def bulk_insert(self, records: Sequence[StoredRecord]) -> None:
        """Insert *records* in a single operation.

        Raises :class:`~wellness_rag.errors.StoreWriteError` on failure.
        """
        ...

    # -- read side ------------------------------------------------------------

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* results matching *query_embedding*.

        Each result dict **must** contain at least:

        * ``"id"`` – record identifier
        * ``"content"`` – the chunk text
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – associated metadata dict
        """
        ...

    @abstractmethod
    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Embed *query* and delegate to :meth:`similarity_search`."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
