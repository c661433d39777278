"""Abstract base class for embedding providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from docrag.exceptions import EmbeddingError
from docrag.types import EmbeddedChunk

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docrag.types import Chunk

__all__ = ["BaseEmbedder"]

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Base class for all embedding providers.

    The base class owns batching and result checking: ``embed`` splits the
    input into batches of ``batch_size``, hands each to ``_embed_batch`` and
    verifies that every batch comes back with one vector per text, each of
    exactly ``dimension`` floats. Providers only translate one batch into a
    backend request.

    Raises:
        EmbeddingError: At construction, if ``batch_size`` is below 1.
    """

    def __init__(self, dimension: int, batch_size: int = 64) -> None:
        if batch_size < 1:
            raise EmbeddingError(f"batch_size must be >= 1, got {batch_size}")
        self._dimension = dimension
        self._batch_size = batch_size

    @property
    def dimension(self) -> int:
        """Length of every vector this embedder produces."""
        return self._dimension

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @abstractmethod
    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed one batch of at most ``batch_size`` texts.

        Raises:
            EmbeddingError: If the backend call fails.
        """

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Generate one embedding per input text, in input order.

        Raises:
            EmbeddingError: If a batch fails, or comes back with the wrong
                number of vectors or vectors of the wrong length.
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = list(texts[start : start + self._batch_size])
            result = self._embed_batch(batch)
            if len(result) != len(batch):
                raise EmbeddingError(
                    f"{type(self).__name__} returned {len(result)} embeddings "
                    f"for {len(batch)} inputs"
                )
            for vec in result:
                if len(vec) != self._dimension:
                    raise EmbeddingError(
                        f"{type(self).__name__} returned {len(vec)}-dimensional vectors, "
                        f"expected {self._dimension}"
                    )
            vectors.extend(result)

        logger.debug("Embedded %d texts with %s", len(vectors), type(self).__name__)
        return vectors

    def embed_chunks(self, chunks: Sequence[Chunk]) -> list[EmbeddedChunk]:
        """Pair each chunk with the embedding of its content."""
        if not chunks:
            return []
        vectors = self.embed([c.content for c in chunks])
        return [
            EmbeddedChunk(chunk=chunk, embedding=tuple(vec))
            for chunk, vec in zip(chunks, vectors, strict=True)
        ]

    def embed_query(self, text: str) -> list[float]:
        """Generate an embedding for a search query."""
        return self.embed([text])[0]
