"""
Ingestion — discovery, parsing, chunking, and embedding into the vector store.

This package is the batch ETL job that turns the studio's ``.txt`` and
``.csv`` source files into embedded chunks stored in the knowledge-base
collection.  :class:`BatchOrchestrator` drives the stages; the CLI in
:mod:`wellness_rag.ingestion.cli` wires them from settings.
"""

from wellness_rag.ingestion.chunker import chunk_documents
from wellness_rag.ingestion.discovery import count_batches, discover_source_files, plan_batch
from wellness_rag.ingestion.embedder import EmbeddingSink
from wellness_rag.ingestion.loader import load_batch, load_source_file
from wellness_rag.ingestion.models import BatchResult, RunSummary, SourceFile, SourceKind
from wellness_rag.ingestion.orchestrator import BatchOrchestrator, RunState
from wellness_rag.ingestion.reset import ResetGuard

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "EmbeddingSink",
    "ResetGuard",
    "RunState",
    "RunSummary",
    "SourceFile",
    "SourceKind",
    "chunk_documents",
    "count_batches",
    "discover_source_files",
    "load_batch",
    "load_source_file",
    "plan_batch",
]
