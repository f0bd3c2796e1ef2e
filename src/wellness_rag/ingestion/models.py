"""Domain models for source files and batch statistics."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """Parsing strategy selected from a file's extension."""

    TEXT = "text"
    CSV = "csv"

    @classmethod
    def from_suffix(cls, suffix: str) -> SourceKind | None:
        return _SUFFIX_KINDS.get(suffix)


_SUFFIX_KINDS: dict[str, SourceKind] = {
    ".txt": SourceKind.TEXT,
    ".csv": SourceKind.CSV,
}


class SourceFile(BaseModel):
    """A discovered document on disk.

    Attributes
    ----------
    name:
        File name, used for ordering and batch logs.
    path:
        Absolute or working-directory-relative path to the file.
    kind:
        Parsing strategy, inferred from the extension.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    kind: SourceKind


class BatchResult(BaseModel):
    """Statistics for one processed batch."""

    batch_index: int
    file_count: int = 0
    document_count: int = 0
    chunk_count: int = 0
    duration_seconds: float = 0.0
    files: list[str] = Field(default_factory=list)
    deleted_records: int = 0

    @classmethod
    def empty(cls, batch_index: int) -> BatchResult:
        """The zero-work result for a batch with no files."""
        return cls(batch_index=batch_index)

    def summary_line(self) -> str:
        return (
            f"Batch {self.batch_index}: {self.file_count} files, "
            f"{self.document_count} documents, {self.chunk_count} chunks "
            f"({self.duration_seconds:.1f}s)"
        )


class RunSummary(BaseModel):
    """Aggregate of every :class:`BatchResult` in a completed run."""

    results: list[BatchResult] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_files(self) -> int:
        return sum(r.file_count for r in self.results)

    @property
    def total_documents(self) -> int:
        return sum(r.document_count for r in self.results)

    @property
    def total_chunks(self) -> int:
        return sum(r.chunk_count for r in self.results)
