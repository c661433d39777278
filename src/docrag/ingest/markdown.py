"""Markdown/text file loader producing Document records.

Reads local files, strips a BOM, normalizes whitespace, and derives the
title from the first heading (falling back to the filename stem).
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from docrag.exceptions import ParseError
from docrag.types import Document

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

__all__ = ["MarkdownLoader", "iter_documents"]

logger = logging.getLogger(__name__)

MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50 MB

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({".md", ".markdown", ".txt"})

# Matches 3+ consecutive blank lines (to collapse to 2)
_MULTI_BLANK_RE = re.compile(r"\n{3,}")

# Matches any markdown heading (h1-h6) at the start of a line for title extraction
_HEADING_RE = re.compile(r"^#{1,6}\s+(.+)", re.MULTILINE)


class MarkdownLoader:
    """Loads markdown and plain-text files as Documents."""

    def can_load(self, path: Path) -> bool:
        """Check whether the file extension is supported."""
        return path.suffix.lower() in SUPPORTED_EXTENSIONS

    def load(self, path: Path) -> Document:
        """Read one file into a Document.

        Raises:
            ParseError: If the file is missing, too large, or unreadable.
        """
        if not path.is_file():
            raise ParseError(f"Not a file: {path}")

        file_size = path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            raise ParseError(
                f"File {path.name} ({file_size} bytes) exceeds maximum size ({MAX_FILE_SIZE} bytes)"
            )

        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("UTF-8 decode failed for %s, retrying with replacement", path.name)
            raw = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            raise ParseError(f"Cannot read {path.name}: {e}") from e

        if raw.startswith("\ufeff"):
            raw = raw[1:]

        content = _normalize_whitespace(raw)
        mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)

        logger.info("Loaded %s: %d chars", path.name, len(content))
        return Document.from_text(
            url=path.resolve().as_uri(),
            title=_extract_title(content, path),
            content=content,
            last_modified=mtime,
        )


def iter_documents(
    paths: Iterable[Path],
    loader: MarkdownLoader | None = None,
) -> Iterator[Document]:
    """Yield Documents for files and (recursively) directories.

    Directory entries with unsupported extensions are skipped; an explicitly
    named file with an unsupported extension raises ParseError.
    """
    loader = loader or MarkdownLoader()
    for path in paths:
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file() and loader.can_load(child):
                    yield loader.load(child)
        elif not loader.can_load(path):
            raise ParseError(f"Unsupported file type: {path.name}")
        else:
            yield loader.load(path)


def _normalize_whitespace(text: str) -> str:
    """Strip trailing spaces per line, collapse 3+ blank lines, trim the ends."""
    lines = [line.rstrip() for line in text.replace("\r\n", "\n").split("\n")]
    return _MULTI_BLANK_RE.sub("\n\n", "\n".join(lines)).strip()


def _extract_title(content: str, path: Path) -> str:
    """First ``#`` heading, else the filename stem."""
    match = _HEADING_RE.search(content)
    if match:
        return match.group(1).strip()
    return path.stem
