"""Markdown heading-based section extraction."""

from __future__ import annotations

import logging
import re

from docrag.types import Section

__all__ = ["extract_sections"]

logger = logging.getLogger(__name__)

# Heading pattern: matches lines like "# Heading", "## Heading", etc.
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")


def extract_sections(content: str, document_title: str) -> list[Section]:
    """Split document text into titled sections at markdown headings.

    Each heading line opens a new section whose body is every line up to
    the next heading. Sections with a blank body are dropped. Text before
    the first heading belongs to no section. When nothing survives, the
    whole document becomes one level-1 section titled ``document_title``
    (or nothing at all if the document is blank).
    """
    sections: list[Section] = []
    current: tuple[str, int, int] | None = None  # (title, level, start_line)
    body: list[str] = []

    def _close() -> None:
        if current is None:
            return
        text = "\n".join(body).strip()
        if text:
            title, level, start_line = current
            sections.append(Section(title=title, level=level, content=text, start_line=start_line))

    for line_no, line in enumerate(content.split("\n")):
        match = _HEADING_RE.match(line)
        if match:
            _close()
            current = (match.group(2).strip(), len(match.group(1)), line_no)
            body = []
        else:
            body.append(line)

    _close()

    if not sections:
        whole = content.strip()
        if whole:
            sections.append(Section(title=document_title, level=1, content=whole, start_line=0))

    logger.debug("Extracted %d sections from %r", len(sections), document_title)
    return sections
