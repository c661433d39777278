"""Abstract base class for vector stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docrag.types import EmbeddedChunk, SearchResult, StoredChunk, StoreStats

__all__ = ["BaseStore"]

logger = logging.getLogger(__name__)


class BaseStore(ABC):
    """Base class for all vector stores.

    Subclasses persist embedded chunks and answer similarity queries.
    """

    @abstractmethod
    def upsert(self, chunks: Sequence[EmbeddedChunk]) -> None:
        """Insert or replace embedded chunks as one atomic batch.

        Raises:
            DimensionMismatchError: If any embedding has the wrong length.
            StoreError: If the write fails.
        """

    @abstractmethod
    def search(self, query: Sequence[float], top_k: int) -> list[SearchResult]:
        """Rank stored chunks by similarity to ``query``.

        Returns:
            At most ``top_k`` results, best first.

        Raises:
            ValidationError: If the query or ``top_k`` is invalid.
            StoreError: If the read fails.
        """

    @abstractmethod
    def delete_document(self, document_url: str) -> int:
        """Delete every chunk belonging to one document.

        Returns:
            Number of chunks deleted.
        """

    @abstractmethod
    def get_chunks(self, document_url: str | None = None) -> list[StoredChunk]:
        """Read back stored chunks, optionally for a single document."""

    @abstractmethod
    def get_stats(self) -> StoreStats:
        """Return the chunk count and dimensionality."""

    @abstractmethod
    def clear(self) -> None:
        """Delete all chunks and embeddings."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying storage handle."""
