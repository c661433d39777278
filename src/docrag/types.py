"""Pipeline data contracts for docrag.

Frozen dataclasses that flow between pipeline stages:
  Document → list[Section] → list[Chunk] → list[EmbeddedChunk] → stored → SearchResult
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

__all__ = [
    "Chunk",
    "Document",
    "EmbeddedChunk",
    "SearchResult",
    "Section",
    "StoreStats",
    "StoredChunk",
    "content_hash",
]


def content_hash(text: str) -> str:
    """Return the ``sha256:<hex>`` digest of a document body."""
    return f"sha256:{hashlib.sha256(text.encode('utf-8')).hexdigest()}"


@dataclass(frozen=True)
class Document:
    """A source document handed to the chunker."""

    url: str
    title: str
    content: str
    last_modified: datetime | None = None
    content_hash: str = ""

    @classmethod
    def from_text(
        cls,
        url: str,
        title: str,
        content: str,
        last_modified: datetime | None = None,
    ) -> Document:
        """Build a Document, deriving ``content_hash`` from the content."""
        return cls(
            url=url,
            title=title,
            content=content,
            last_modified=last_modified,
            content_hash=content_hash(content),
        )


@dataclass(frozen=True)
class Section:
    """A titled run of document text under one markdown heading."""

    title: str
    level: int
    content: str
    start_line: int = 0


@dataclass(frozen=True)
class Chunk:
    """A token-bounded passage of a document, the unit of embedding and retrieval."""

    chunk_id: str
    document_url: str
    content: str
    title: str
    start_offset: int
    end_offset: int
    token_count: int


@dataclass(frozen=True)
class EmbeddedChunk:
    """A chunk with its embedding vector attached."""

    chunk: Chunk
    embedding: tuple[float, ...] = field(default_factory=tuple)

    @property
    def chunk_id(self) -> str:
        return self.chunk.chunk_id


@dataclass(frozen=True)
class StoredChunk:
    """A chunk read back from the store with its bookkeeping timestamps."""

    chunk: Chunk
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class SearchResult:
    """A ranked search hit."""

    title: str
    snippet: str
    url: str
    score: float


@dataclass(frozen=True)
class StoreStats:
    """Row count and fixed dimensionality of a vector store."""

    chunk_count: int
    dimensions: int
