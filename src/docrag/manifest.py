"""Manifest system for docrag.

Tracks indexed documents by URL and content hash for incremental rebuilds.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from docrag.exceptions import ManifestError

if TYPE_CHECKING:
    from pathlib import Path

    from docrag.types import Document

__all__ = [
    "DocumentEntry",
    "Manifest",
    "load_manifest",
    "make_entry",
    "save_manifest",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEntry:
    """Immutable record of an indexed document."""

    url: str
    title: str
    hash: str
    added: str
    chunks: int = 0


@dataclass
class Manifest:
    """Tracks all indexed documents, keyed by document URL.

    Serializes to/from a list in JSON for readability.
    """

    schema_version: str = "1"
    _documents: dict[str, DocumentEntry] = field(default_factory=dict)

    @property
    def documents(self) -> list[DocumentEntry]:
        """Return documents as a list (for iteration and serialization)."""
        return list(self._documents.values())

    def add_document(self, entry: DocumentEntry) -> None:
        """Add or replace a document entry."""
        self._documents[entry.url] = entry

    def remove_document(self, url: str) -> bool:
        """Remove a document by URL. Returns True if found and removed."""
        return self._documents.pop(url, None) is not None

    def get_document(self, url: str) -> DocumentEntry | None:
        return self._documents.get(url)

    def is_changed(self, url: str, current_hash: str) -> bool:
        """True if the document is new or its hash differs from the recorded one."""
        existing = self.get_document(url)
        if existing is None:
            return True
        return existing.hash != current_hash

    def clear(self) -> None:
        self._documents.clear()


def make_entry(document: Document, chunks: int) -> DocumentEntry:
    """Create a DocumentEntry for a freshly indexed document."""
    return DocumentEntry(
        url=document.url,
        title=document.title,
        hash=document.content_hash,
        added=datetime.now(UTC).isoformat(),
        chunks=chunks,
    )


def _entry_to_dict(entry: DocumentEntry) -> dict[str, object]:
    return {
        "url": entry.url,
        "title": entry.title,
        "hash": entry.hash,
        "added": entry.added,
        "chunks": entry.chunks,
    }


def _entry_from_dict(data: dict[str, object]) -> DocumentEntry:
    """Deserialize a DocumentEntry from a dict."""
    required = ("url", "hash", "added")
    missing = [k for k in required if k not in data]
    if missing:
        raise ManifestError(f"Document entry missing required fields: {missing}")
    return DocumentEntry(
        url=str(data["url"]),
        title=str(data.get("title", "")),
        hash=str(data["hash"]),
        added=str(data["added"]),
        chunks=int(str(data.get("chunks", 0))),
    )


def save_manifest(manifest: Manifest, path: Path) -> None:
    """Save manifest to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "schema_version": manifest.schema_version,
        "documents": [_entry_to_dict(d) for d in manifest.documents],
    }
    try:
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        logger.info("Saved manifest to %s", path)
    except OSError as e:
        logger.error("Failed to save manifest to %s: %s", path, e)
        raise ManifestError(f"Failed to save manifest to {path}: {e}") from e


def load_manifest(path: Path) -> Manifest:
    """Load manifest from a JSON file."""
    if not path.exists():
        raise ManifestError(f"Manifest file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load manifest from %s: %s", path, e)
        raise ManifestError(f"Failed to load manifest from {path}: {e}") from e

    manifest = Manifest(schema_version=str(data.get("schema_version", "1")))
    for doc_data in data.get("documents", []):
        manifest.add_document(_entry_from_dict(doc_data))

    logger.info("Loaded manifest from %s (%d documents)", path, len(manifest.documents))
    return manifest
