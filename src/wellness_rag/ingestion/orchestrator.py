"""Batch orchestration for the knowledge-base loader.

A run walks the discovered files in fixed-size batches, strictly one after
another::

    IDLE → RUNNING(start) → RUNNING(start + 1) → … → COMPLETED
                   └──────────── any error ─────────────→ FAILED

Each non-empty batch goes through reset guard (batch 0 only) → parse →
split → embed + store.  Batches are paced by a fixed delay to stay under
the embedding service's rate limits.  The first error stops the run;
already-stored batches are left in place.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from wellness_rag.errors import BatchFailedError
from wellness_rag.ingestion.chunker import chunk_documents
from wellness_rag.ingestion.discovery import count_batches, discover_source_files, plan_batch
from wellness_rag.ingestion.embedder import EmbeddingSink
from wellness_rag.ingestion.loader import load_batch
from wellness_rag.ingestion.models import BatchResult, RunSummary, SourceFile
from wellness_rag.ingestion.reset import ResetGuard
from wellness_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchOrchestrator:
    """Drive discovery, reset, parsing, chunking and storage across batches.

    Parameters
    ----------
    data_dir:
        Directory holding the ``.txt`` / ``.csv`` sources.
    store:
        Target vector store (used by the reset guard).
    sink:
        Embeds chunks and writes them to *store*.
    batch_size:
        Files per batch.
    total_batches:
        Fixed batch count; computed from the number of files when ``None``.
    chunk_size / chunk_overlap:
        Splitter parameters.
    batch_delay_seconds:
        Pause between consecutive batches.
    sleep / clock:
        Injected for tests; default to :func:`time.sleep` and
        :func:`time.monotonic`.
    """

    def __init__(
        self,
        *,
        data_dir: str | Path,
        store: VectorStoreBase,
        sink: EmbeddingSink,
        batch_size: int = 3,
        total_batches: int | None = None,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        batch_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.data_dir = Path(data_dir)
        self._store = store
        self._sink = sink
        self.batch_size = batch_size
        self.total_batches = total_batches
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep
        self._clock = clock

        self.state = RunState.IDLE
        self.current_batch: int | None = None
        self.results: list[BatchResult] = []
        self._reset_guard = ResetGuard(store)

    def run(self, start_batch: int = 0) -> RunSummary:
        """Process every batch from *start_batch* and return the run summary.

        Raises
        ------
        DirectoryNotFoundError
            The data directory is missing; nothing was touched.
        BatchFailedError
            A batch failed; ``batch_index`` names it and ``__cause__`` holds
            the component error.
        """
        if start_batch < 0:
            raise ValueError(f"start_batch must be >= 0, got {start_batch}")

        self.results = []
        self._reset_guard = ResetGuard(self._store)
        run_started = self._clock()

        try:
            files = discover_source_files(self.data_dir)
        except Exception:
            self.state = RunState.FAILED
            raise
        logger.info("Files: %s", ", ".join(f.name for f in files) or "<none>")

        total = self.total_batches or count_batches(len(files), self.batch_size)
        last_batch = total - 1

        for batch_index in range(start_batch, total):
            self.state = RunState.RUNNING
            self.current_batch = batch_index
            try:
                result = self.process_batch(files, batch_index)
            except Exception as exc:
                self.state = RunState.FAILED
                logger.error("Batch %d failed: %s", batch_index, exc, exc_info=True)
                logger.error("Stopping execution due to error")
                raise BatchFailedError(batch_index, exc) from exc
            self.results.append(result)

            if batch_index < last_batch and self.batch_delay_seconds > 0:
                logger.info("Waiting %.1f seconds before next batch", self.batch_delay_seconds)
                self._sleep(self.batch_delay_seconds)

        self.state = RunState.COMPLETED
        summary = RunSummary(
            results=list(self.results),
            elapsed_seconds=round(self._clock() - run_started, 1),
        )
        logger.info(
            "All batches completed: %d files, %d documents, %d chunks in %.1fs",
            summary.total_files, summary.total_documents, summary.total_chunks,
            summary.elapsed_seconds,
        )
        return summary

    def process_batch(self, files: Sequence[SourceFile], batch_index: int) -> BatchResult:
        """Run one batch: reset guard, parse, split, embed and store."""
        batch_files = plan_batch(files, batch_index, self.batch_size)
        start = batch_index * self.batch_size
        logger.info("=" * 60)
        logger.info("Loading batch %d", batch_index)

        if not batch_files:
            logger.info("No files in batch %d - skipping", batch_index)
            return BatchResult.empty(batch_index)

        logger.info(
            "Batch %d: processing files %d-%d of %d: %s",
            batch_index, start + 1, start + len(batch_files), len(files),
            ", ".join(f.name for f in batch_files),
        )
        t0 = self._clock()

        deleted = 0
        if self._reset_guard.applies_to(batch_index):
            deleted = self._reset_guard.reset()
        else:
            logger.info("Skipping delete (not first batch)")

        documents = load_batch(batch_files)
        logger.info(
            "Total documents loaded: %d (%d characters)",
            len(documents), sum(len(d.page_content) for d in documents),
        )

        chunks = chunk_documents(documents, self.chunk_size, self.chunk_overlap)
        logger.info("Created %d chunks", len(chunks))

        self._sink.write(chunks)

        result = BatchResult(
            batch_index=batch_index,
            file_count=len(batch_files),
            document_count=len(documents),
            chunk_count=len(chunks),
            duration_seconds=round(self._clock() - t0, 1),
            files=[f.name for f in batch_files],
            deleted_records=deleted,
        )
        logger.info("Batch %d completed successfully", batch_index)
        return result
