"""Sentence splitting for chunk boundary decisions."""

from __future__ import annotations

import re

__all__ = ["split_sentences"]

# Whitespace that directly follows sentence-terminal punctuation
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")

# Blank line, possibly containing spaces or tabs
_PARAGRAPH_BOUNDARY_RE = re.compile(r"\n\s*\n")


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-like units.

    Falls back to blank-line paragraphs when no sentence boundary is found,
    which covers code blocks and prose without terminal punctuation.
    """
    sentences = [s for s in _SENTENCE_BOUNDARY_RE.split(text) if s.strip()]
    if len(sentences) == 1:
        return [p for p in _PARAGRAPH_BOUNDARY_RE.split(text) if p.strip()]
    return sentences
