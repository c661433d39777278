"""Pipeline orchestrator for docrag.

Composes chunker, embedder and store via constructor injection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docrag.exceptions import DocragError, PipelineError

if TYPE_CHECKING:
    from docrag.chunk.base import BaseChunker
    from docrag.embed.base import BaseEmbedder
    from docrag.store.base import BaseStore
    from docrag.types import Chunk, Document, SearchResult

__all__ = ["Pipeline"]

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates indexing and querying.

    All dependencies are injected via the constructor, making the pipeline
    fully testable with mock implementations.

    Usage::

        pipeline = Pipeline(chunker=DocumentChunker(), embedder=embedder, store=store)
        pipeline.index_document(document)
        results = pipeline.search("how are orders matched?", top_k=5)
    """

    def __init__(
        self,
        chunker: BaseChunker,
        embedder: BaseEmbedder,
        store: BaseStore,
    ) -> None:
        self.chunker = chunker
        self.embedder = embedder
        self.store = store

    def index_document(self, document: Document) -> int:
        """Chunk, embed, and store one document, replacing any earlier version.

        Returns:
            Number of distinct chunks stored. Chunks whose ID repeats an
            earlier chunk of the same document are dropped with a warning.

        Raises:
            PipelineError: If any stage fails.
        """
        try:
            chunks = self.chunker.chunk_document(document)
            logger.info("Chunked %s into %d chunks", document.url, len(chunks))
            chunks = _drop_duplicate_ids(chunks, document.url)

            embedded = self.embedder.embed_chunks(chunks) if chunks else []

            removed = self.store.delete_document(document.url)
            if removed:
                logger.info("Replaced %d stale chunks for %s", removed, document.url)

            if not embedded:
                logger.warning("No chunks produced for %s", document.url)
                return 0

            self.store.upsert(embedded)
            logger.info("Stored %d chunks for %s", len(embedded), document.url)
            return len(embedded)

        except DocragError as e:
            raise PipelineError(f"Pipeline failed indexing {document.url}: {e}") from e

    def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Embed a text query and rank stored chunks against it.

        Raises:
            PipelineError: If embedding or search fails.
        """
        try:
            vector = self.embedder.embed_query(query)
            return self.store.search(vector, top_k)
        except DocragError as e:
            raise PipelineError(f"Search failed for {query!r}: {e}") from e


def _drop_duplicate_ids(chunks: list[Chunk], document_url: str) -> list[Chunk]:
    """Keep the first chunk for each chunk ID, preserving order."""
    unique: dict[str, Chunk] = {}
    for chunk in chunks:
        unique.setdefault(chunk.chunk_id, chunk)
    dropped = len(chunks) - len(unique)
    if dropped:
        logger.warning(
            "Dropped %d chunks of %s whose content repeats an earlier chunk (same ID)",
            dropped,
            document_url,
        )
    return list(unique.values())
