"""Section-aware sentence chunker with token bounds and overlap.

Splits Document content into Chunk objects:
- Each markdown section is chunked independently (no cross-section overlap)
- Sections that fit within max_tokens become a single chunk
- Larger sections are filled sentence by sentence up to max_tokens
- A chunk is never closed below min_tokens; min wins over max
- Consecutive chunks of a section share a trailing window of whole sentences
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from docrag.chunk.base import BaseChunker
from docrag.chunk.sections import extract_sections
from docrag.chunk.sentences import split_sentences
from docrag.chunk.tokens import estimate_tokens
from docrag.config import ChunkConfig
from docrag.exceptions import ChunkError
from docrag.types import Chunk

if TYPE_CHECKING:
    from docrag.types import Document, Section

__all__ = ["DocumentChunker", "make_chunk_id"]

logger = logging.getLogger(__name__)

CHUNK_ID_LENGTH = 16
_ID_PREFIX_CHARS = 100


def make_chunk_id(document_url: str, start_offset: int, end_offset: int, content: str) -> str:
    """Generate a deterministic chunk ID from position and content prefix."""
    key = f"{document_url}:{start_offset}:{end_offset}:{content[:_ID_PREFIX_CHARS]}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:CHUNK_ID_LENGTH]


def _join(parts: list[str]) -> str:
    return " ".join(parts)


class DocumentChunker(BaseChunker):
    """Sentence-accumulating chunker bounded by estimated token counts.

    Usage::

        chunker = DocumentChunker(ChunkConfig(min_tokens=50, max_tokens=100, overlap_tokens=20))
        chunks = chunker.chunk_document(document)

    Raises:
        ConfigError: At construction, if the token thresholds are inconsistent.
    """

    def __init__(self, config: ChunkConfig | None = None) -> None:
        self.config = config or ChunkConfig()
        self.config.validate()

    def chunk_document(self, document: Document) -> list[Chunk]:
        """Split a document into chunks, section by section.

        Any text is accepted: empty or whitespace-only content yields an
        empty list, never an error.

        Raises:
            ChunkError: Only on an internal defect in the chunker itself,
                wrapping the underlying exception.
        """
        try:
            chunks: list[Chunk] = []
            for section in extract_sections(document.content, document.title):
                chunks.extend(self.chunk_section(section, document.url))
        except ChunkError:
            raise
        except Exception as e:
            logger.error("Failed to chunk document %s: %s", document.url, e)
            raise ChunkError(f"Failed to chunk document {document.url}: {e}") from e

        logger.info(
            "Chunked %s into %d chunks (max_tokens=%d, overlap=%d)",
            document.url,
            len(chunks),
            self.config.max_tokens,
            self.config.overlap_tokens,
        )
        return chunks

    def chunk_section(self, section: Section, document_url: str) -> list[Chunk]:
        """Split one section into token-bounded, overlapping chunks."""
        content = section.content
        if not content.strip():
            return []

        if estimate_tokens(content) <= self.config.max_tokens:
            return [self.create_chunk(content, section.title, document_url, 0, len(content))]

        sentences = split_sentences(content)

        # Character position of each sentence in the section's sentence stream
        positions: list[int] = []
        cursor = 0
        for sentence in sentences:
            positions.append(cursor)
            cursor += len(sentence) + 1

        chunks: list[Chunk] = []
        buffer: list[str] = []
        chunk_start = 0

        for i, sentence in enumerate(sentences):
            candidate = _join([*buffer, sentence])
            if buffer and estimate_tokens(candidate) > self.config.max_tokens:
                current = _join(buffer)
                if estimate_tokens(current) >= self.config.min_tokens:
                    chunks.append(
                        self.create_chunk(
                            current.strip(),
                            section.title,
                            document_url,
                            chunk_start,
                            chunk_start + len(current),
                        )
                    )
                    overlap_from = self._overlap_start(sentences, i)
                    buffer = [*sentences[overlap_from:i], sentence]
                    chunk_start = positions[overlap_from]
                    continue

            if not buffer:
                chunk_start = positions[i]
            buffer.append(sentence)

        current = _join(buffer)
        if current.strip():
            chunks.append(
                self.create_chunk(
                    current.strip(),
                    section.title,
                    document_url,
                    chunk_start,
                    chunk_start + len(current),
                )
            )

        logger.debug(
            "Section %r split into %d chunks from %d sentences",
            section.title,
            len(chunks),
            len(sentences),
        )
        return chunks

    def _overlap_start(self, sentences: list[str], cut_index: int) -> int:
        """Index of the first sentence in the overlap window ending before ``cut_index``.

        Walks backward accumulating whole sentences while the window stays
        within ``overlap_tokens``. Returns ``cut_index`` for an empty window.
        """
        start = cut_index
        for j in range(cut_index - 1, -1, -1):
            if estimate_tokens(_join(sentences[j:cut_index])) > self.config.overlap_tokens:
                break
            start = j
        return start

    def create_chunk(
        self,
        content: str,
        title: str,
        document_url: str,
        start_offset: int,
        end_offset: int,
    ) -> Chunk:
        """Build a Chunk record with its content-addressed ID and token count."""
        return Chunk(
            chunk_id=make_chunk_id(document_url, start_offset, end_offset, content),
            document_url=document_url,
            content=content,
            title=title,
            start_offset=start_offset,
            end_offset=end_offset,
            token_count=estimate_tokens(content),
        )
