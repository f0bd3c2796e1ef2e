"""Domain models for stored records, retrieval results, and citations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class StoredRecord(BaseModel):
    """The unit persisted in the vector store: one embedded chunk.

    Records are only ever inserted; refreshing the knowledge base means
    deleting everything and inserting again.
    """

    id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store queries.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"file_name"``, ``"row"``).
    operator:
        Comparison operator — one of ``eq``, ``ne``, ``gt``, ``gte``,
        ``lt``, ``lte``, ``in``, ``nin``.
    value:
        The value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)

    @classmethod
    def from_mapping(cls, mapping: dict[str, Any]) -> list[MetadataFilter]:
        """Turn ``{"key": value}`` containment filters into equality filters."""
        return [cls.equals(key, value) for key, value in mapping.items()]


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source file.

    Attributes
    ----------
    citation_id:
        Unique identifier for this citation instance.
    document_id:
        The vector-store ID of the chunk (``None`` when unknown).
    source:
        Originating file name (falls back to the stored ``source`` path).
    row:
        0-based data row for chunks that came from a CSV file.
    score:
        Similarity score returned by the vector store.
    metadata:
        Full metadata stored alongside the chunk.
    retrieved_at:
        UTC timestamp of when the retrieval happened.
    """

    citation_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    document_id: str | None = None
    source: str = "unknown"
    row: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[source§row]`` reference string."""
        if self.row is None:
            return f"[{self.source}]"
        return f"[{self.source}§{self.row}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"
