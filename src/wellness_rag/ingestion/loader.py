"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from langchain_community.document_loaders import CSVLoader, TextLoader

from wellness_rag.errors import ParseError
from wellness_rag.ingestion.models import SourceFile, SourceKind

if TYPE_CHECKING:
    from langchain_core.document_loaders import BaseLoader
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)


def _text_loader(source: SourceFile) -> BaseLoader:
    return TextLoader(str(source.path), encoding="utf-8")


def _csv_loader(source: SourceFile) -> BaseLoader:
    # No column restriction: every column ends up in the row's page content.
    return CSVLoader(
        str(source.path),
        csv_args={"delimiter": ",", "strict": True},
        encoding="utf-8",
    )


_LOADERS = {
    SourceKind.TEXT: _text_loader,
    SourceKind.CSV: _csv_loader,
}


def load_source_file(source: SourceFile) -> list[Document]:
    """Load one source file into raw documents.

    Text files yield a single document; CSV files yield one document per
    data row. Every document's metadata records the originating ``source``
    path and ``file_name`` (plus ``row`` for CSV rows).

    Raises
    ------
    ParseError
        If the file cannot be read or is malformed. The original exception
        is chained as ``__cause__``.
    """
    try:
        docs = _LOADERS[source.kind](source).load()
    except Exception as exc:
        raise ParseError(source.name, f"Error loading {source.name}: {exc}") from exc

    for doc in docs:
        doc.metadata["file_name"] = source.name

    total_chars = sum(len(d.page_content) for d in docs)
    logger.info("Loaded %s: %d documents (%d characters)", source.name, len(docs), total_chars)
    return docs


def load_batch(files: Iterable[SourceFile]) -> list[Document]:
    """Load *files* in order; the first failure aborts the whole batch."""
    documents: list[Document] = []
    for source in files:
        documents.extend(load_source_file(source))
    return documents
