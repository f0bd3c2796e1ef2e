"""Text chunking strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

if TYPE_CHECKING:
    from langchain_core.documents import Document

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


def build_splitter(chunk_size: int = 1000, chunk_overlap: int = 200) -> RecursiveCharacterTextSplitter:
    """Return a boundary-aware splitter whose chunks are exact substrings.

    Separators stay attached to the end of the preceding piece and
    whitespace is never stripped, so removing the overlapping regions and
    concatenating the chunks of a document gives back its original text.
    :func:`chunk_documents` then drops pieces that are only whitespace.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
        )
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=DEFAULT_SEPARATORS,
        keep_separator="end",
        strip_whitespace=False,
    )


def chunk_documents(
    documents: list[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Document]:
    """Split *documents* into smaller chunks for embedding.

    Parameters
    ----------
    documents:
        Raw documents produced by a loader.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Maximum number of characters shared by consecutive chunks of the
        same document.

    Returns
    -------
    list[Document]
        Chunks in document order, each carrying its parent's metadata.
        Whitespace-only pieces (a blank line left over after a long
        paragraph) are dropped.
    """
    chunks = build_splitter(chunk_size, chunk_overlap).split_documents(documents)
    return [c for c in chunks if c.page_content.strip()]
