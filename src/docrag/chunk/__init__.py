"""Chunking engine — section extraction, sentence splitting, token-bounded chunks."""

from docrag.chunk.base import BaseChunker
from docrag.chunk.chunker import DocumentChunker, make_chunk_id
from docrag.chunk.sections import extract_sections
from docrag.chunk.sentences import split_sentences
from docrag.chunk.tokens import estimate_tokens

__all__ = [
    "BaseChunker",
    "DocumentChunker",
    "estimate_tokens",
    "extract_sections",
    "make_chunk_id",
    "split_sentences",
]
