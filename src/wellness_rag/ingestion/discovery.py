"""Source-file discovery and batch planning."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Sequence

from wellness_rag.errors import DirectoryNotFoundError
from wellness_rag.ingestion.models import SourceFile, SourceKind

logger = logging.getLogger(__name__)


def discover_source_files(directory: str | Path) -> list[SourceFile]:
    """List the ``.txt`` and ``.csv`` files in *directory*, sorted by name.

    Parameters
    ----------
    directory:
        Directory holding the source documents. Not searched recursively.

    Returns
    -------
    list[SourceFile]
        Recognised files in lexicographic name order, so batch boundaries
        are stable across runs.

    Raises
    ------
    DirectoryNotFoundError
        If *directory* does not exist or is not a directory.
    """
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryNotFoundError(f"Data directory not found: {root}")

    files: list[SourceFile] = []
    for entry in root.iterdir():
        if not entry.is_file():
            continue
        kind = SourceKind.from_suffix(entry.suffix)
        if kind is None:
            continue
        files.append(SourceFile(name=entry.name, path=entry, kind=kind))

    files.sort(key=lambda f: f.name)
    logger.info("Found %d source files in %s", len(files), root)
    return files


def count_batches(file_count: int, batch_size: int) -> int:
    """Number of batches needed to cover *file_count* files."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return math.ceil(file_count / batch_size)


def plan_batch(
    files: Sequence[SourceFile],
    batch_index: int,
    batch_size: int,
) -> list[SourceFile]:
    """Return the contiguous slice of *files* that belongs to *batch_index*.

    The slice is empty when the batch lies past the end of the list; callers
    treat that as a zero-work batch.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if batch_index < 0:
        raise ValueError(f"batch_index must be >= 0, got {batch_index}")
    start = batch_index * batch_size
    end = min(start + batch_size, len(files))
    return list(files[start:end])
