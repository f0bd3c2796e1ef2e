"""Command-line loader for the production knowledge base.

Reads every ``.txt`` / ``.csv`` file in the data directory, splits it into
chunks, embeds them and stores them in the vector store, batch by batch.
The first batch wipes the collection before loading.

Usage
-----
    export VECTOR_STORE_SERVICE_KEY=...   # or VECTOR_STORE_ANON_KEY
    export OPENAI_API_KEY=...
    load-docs                             # or: python -m wellness_rag.ingestion.cli
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from wellness_rag.config import Settings, load_settings, mask_secret
from wellness_rag.errors import BatchFailedError, IngestionError
from wellness_rag.ingestion.embedder import EmbeddingSink, get_embedding_function
from wellness_rag.ingestion.models import RunSummary
from wellness_rag.ingestion.orchestrator import BatchOrchestrator
from wellness_rag.retrieval.chroma_store import ChromaVectorStore

logger = logging.getLogger("wellness_rag.load_docs")


def build_orchestrator(settings: Settings, data_dir: Path | None = None) -> BatchOrchestrator:
    """Wire the store, embedding client and sink from *settings*."""
    store = ChromaVectorStore.from_settings(settings)
    sink = EmbeddingSink(
        get_embedding_function(settings),
        store,
        expected_dimensions=settings.embedding_dimensions,
    )
    return BatchOrchestrator(
        data_dir=data_dir or settings.data_dir,
        store=store,
        sink=sink,
        batch_size=settings.batch_size,
        total_batches=settings.total_batches,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        batch_delay_seconds=settings.batch_delay_seconds,
    )


def print_summary(summary: RunSummary, settings: Settings) -> None:
    print("=" * 60)
    print("All batches completed successfully!")
    print("-" * 60)
    for result in summary.results:
        print(f"  {result.summary_line()}")
    print("-" * 60)
    print(f"Total files processed:  {summary.total_files}")
    print(f"Total documents loaded: {summary.total_documents}")
    print(f"Total chunks created:   {summary.total_chunks}")
    print(f"Total time:             {summary.elapsed_seconds:.1f}s")
    print(f"Expected ~{summary.total_chunks} records in collection {settings.collection_name!r}")


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load source documents into the vector store")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory of .txt/.csv sources (default: DATA_DIR setting)",
    )
    parser.add_argument(
        "--start-batch",
        type=_non_negative_int,
        default=0,
        help="First batch to process; the collection is only reset when this is 0",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        settings = load_settings()
        settings.require_ingestion_credentials()
    except IngestionError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", exc)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Production document loader started %s", datetime.now().isoformat(timespec="seconds"))
    logger.info(
        "Vector store: %s://%s:%d (collection %r)",
        "https" if settings.chroma_ssl else "http",
        settings.chroma_host, settings.chroma_port, settings.collection_name,
    )
    logger.info("OpenAI API key: %s", mask_secret(settings.openai_api_key))

    orchestrator = build_orchestrator(settings, args.data_dir)
    try:
        summary = orchestrator.run(start_batch=args.start_batch)
    except BatchFailedError:
        # logged with its traceback by the orchestrator
        return 1
    except IngestionError as exc:
        logger.error("Fatal error: %s", exc)
        return 1

    print_summary(summary, settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
