"""Error taxonomy for the ingestion pipeline.

Every error raised here is terminal for an ingestion run. Components raise
their own kind (chained to the underlying cause); the batch orchestrator is
the only place that logs a failure and stops.
"""

from __future__ import annotations


class IngestionError(RuntimeError):
    """Base class for all pipeline errors."""


class ConfigurationError(IngestionError):
    """A required setting is missing or invalid."""


class DirectoryNotFoundError(IngestionError):
    """The source directory does not exist."""


class ParseError(IngestionError):
    """A source file could not be read or is malformed."""

    def __init__(self, file_name: str, message: str | None = None) -> None:
        super().__init__(message or f"Could not parse {file_name}")
        self.file_name = file_name


class EmbeddingServiceError(IngestionError):
    """The embedding service rejected or failed a request."""


class EmbeddingTimeoutError(EmbeddingServiceError, TimeoutError):
    """The embedding service did not answer within the configured timeout."""


class VectorStoreError(IngestionError):
    """Base class for vector-store failures."""


class StoreUnavailableError(VectorStoreError):
    """Counting or deleting stored records could not complete."""


class StoreWriteError(VectorStoreError):
    """A bulk insert into the vector store failed."""


class BatchFailedError(IngestionError):
    """A batch aborted the run; ``__cause__`` holds the component error."""

    def __init__(self, batch_index: int, cause: BaseException) -> None:
        super().__init__(f"Batch {batch_index} failed: {cause}")
        self.batch_index = batch_index
