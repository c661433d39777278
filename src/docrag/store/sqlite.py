"""SQLite vector store with exact cosine-similarity search.

Chunk metadata and embeddings live in two tables keyed by chunk ID in a
single database file. Every search is a full linear scan; there is no
approximate index.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from docrag.config import MAX_TOP_K
from docrag.exceptions import (
    ConfigError,
    DimensionMismatchError,
    StoreClosedError,
    StoreError,
    ValidationError,
)
from docrag.store.base import BaseStore
from docrag.store.similarity import cosine_scores, decode_vector, encode_vector
from docrag.types import Chunk, SearchResult, StoredChunk, StoreStats

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from docrag.types import EmbeddedChunk

__all__ = ["SNIPPET_LENGTH", "SQLiteVectorStore", "make_snippet"]

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200

_SCHEMA = """
CREATE TABLE IF NOT EXISTS chunks (
    id TEXT PRIMARY KEY,
    document_url TEXT NOT NULL,
    content TEXT NOT NULL,
    title TEXT NOT NULL,
    start_offset INTEGER NOT NULL,
    end_offset INTEGER NOT NULL,
    token_count INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS embeddings (
    chunk_id TEXT PRIMARY KEY,
    embedding BLOB NOT NULL,
    FOREIGN KEY (chunk_id) REFERENCES chunks (id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_chunks_document_url ON chunks (document_url);

CREATE TABLE IF NOT EXISTS store_meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

# Conflict updates keep the row (and so its rowid and created_at) in place
_UPSERT_CHUNK = """
INSERT INTO chunks (
    id, document_url, content, title, start_offset, end_offset, token_count,
    created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (id) DO UPDATE SET
    document_url = excluded.document_url,
    content = excluded.content,
    title = excluded.title,
    start_offset = excluded.start_offset,
    end_offset = excluded.end_offset,
    token_count = excluded.token_count,
    updated_at = excluded.updated_at
"""

_UPSERT_EMBEDDING = """
INSERT INTO embeddings (chunk_id, embedding) VALUES (?, ?)
ON CONFLICT (chunk_id) DO UPDATE SET embedding = excluded.embedding
"""

_CHUNK_COLUMNS = (
    "c.id, c.document_url, c.content, c.title, c.start_offset, c.end_offset, "
    "c.token_count, c.created_at, c.updated_at"
)


def make_snippet(content: str) -> str:
    """First 200 characters of ``content``, with ``...`` appended when cut."""
    if len(content) > SNIPPET_LENGTH:
        return content[:SNIPPET_LENGTH] + "..."
    return content


def _utcnow() -> str:
    return datetime.now(UTC).isoformat()


class SQLiteVectorStore(BaseStore):
    """Vector store backed by a single SQLite database file.

    The dimensionality is fixed when the database is first created and
    recorded alongside the data; reopening with a different value fails.

    Usage::

        with SQLiteVectorStore(project_root / ".docrag" / "index.db", dimensions=768) as store:
            store.upsert(embedded_chunks)
            results = store.search(query_vector, top_k=5)
    """

    def __init__(self, path: Path | str, dimensions: int = 1536) -> None:
        if dimensions < 1:
            raise ConfigError(f"dimensions must be >= 1, got {dimensions}")

        self._path = Path(path)
        self._dimensions = dimensions
        self._closed = False
        # One connection shared across threads; every statement runs under this lock
        self._lock = threading.RLock()

        conn: sqlite3.Connection | None = None
        try:
            if str(path) != ":memory:":
                self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            if conn is not None:
                conn.close()
            self._closed = True
            raise StoreError(f"Failed to initialize vector store at {path}: {e}") from e

        self._conn = conn

        self._check_dimensions()
        logger.info("Vector store opened at %s (dimensions=%d)", path, dimensions)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> SQLiteVectorStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def upsert(self, chunks: Sequence[EmbeddedChunk]) -> None:
        """Insert or replace embedded chunks in a single transaction.

        Every embedding is validated before anything is written, and a
        failure part-way through rolls the whole batch back. Existing IDs are
        overwritten in place: ``created_at`` is kept, ``updated_at`` advances.

        Raises:
            DimensionMismatchError: If any embedding has the wrong length.
            StoreClosedError: If the store has been closed.
            StoreError: If the transaction fails.
        """
        for item in chunks:
            if len(item.embedding) != self._dimensions:
                raise DimensionMismatchError(
                    expected=self._dimensions,
                    actual=len(item.embedding),
                    chunk_id=item.chunk.chunk_id,
                )

        now = _utcnow()
        chunk_rows = [
            (
                c.chunk.chunk_id,
                c.chunk.document_url,
                c.chunk.content,
                c.chunk.title,
                c.chunk.start_offset,
                c.chunk.end_offset,
                c.chunk.token_count,
                now,
                now,
            )
            for c in chunks
        ]
        embedding_rows = [(c.chunk.chunk_id, encode_vector(c.embedding)) for c in chunks]

        with self._connection() as conn:
            if not chunks:
                return
            try:
                with conn:
                    conn.executemany(_UPSERT_CHUNK, chunk_rows)
                    conn.executemany(_UPSERT_EMBEDDING, embedding_rows)
            except sqlite3.Error as e:
                raise StoreError(f"Failed to upsert {len(chunks)} chunks: {e}") from e

        logger.info("Upserted %d chunks", len(chunks))

    def search(self, query: Sequence[float], top_k: int) -> list[SearchResult]:
        """Rank every stored chunk by cosine similarity to ``query``.

        Ties keep insertion order. An empty store yields an empty list.
        Safe to call from several threads at once.

        Raises:
            DimensionMismatchError: If ``query`` has the wrong length.
            ValidationError: If ``top_k`` is outside [1, 1000].
            StoreClosedError: If the store has been closed.
            StoreError: If the read fails.
        """
        if len(query) != self._dimensions:
            raise DimensionMismatchError(expected=self._dimensions, actual=len(query))
        if not 1 <= top_k <= MAX_TOP_K:
            raise ValidationError(f"top_k must be between 1 and {MAX_TOP_K}, got {top_k}")

        with self._connection() as conn:
            try:
                rows = conn.execute(
                    "SELECT c.title, c.document_url, c.content, e.embedding "
                    "FROM chunks c JOIN embeddings e ON c.id = e.chunk_id "
                    "ORDER BY c.rowid"
                ).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to search vector store: {e}") from e

        if not rows:
            return []

        # Scoring works on the fetched snapshot, outside the lock
        matrix = np.vstack([decode_vector(row[3]) for row in rows])
        scores = cosine_scores(query, matrix)
        order = np.argsort(-scores, kind="stable")[:top_k]

        results = [
            SearchResult(
                title=rows[idx][0],
                snippet=make_snippet(rows[idx][2]),
                url=rows[idx][1],
                score=float(scores[idx]),
            )
            for idx in order
        ]
        logger.debug("Search scanned %d chunks, returning %d", len(rows), len(results))
        return results

    def delete_document(self, document_url: str) -> int:
        """Delete every chunk (and its embedding) for one document URL."""
        with self._connection() as conn:
            try:
                with conn:
                    cursor = conn.execute(
                        "DELETE FROM chunks WHERE document_url = ?", (document_url,)
                    )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to delete chunks for {document_url}: {e}") from e

        count = cursor.rowcount
        if count:
            logger.info("Deleted %d chunks for %s", count, document_url)
        return count

    def get_chunks(self, document_url: str | None = None) -> list[StoredChunk]:
        """Read back stored chunks in insertion order."""
        sql = f"SELECT {_CHUNK_COLUMNS} FROM chunks c"
        params: tuple[str, ...] = ()
        if document_url is not None:
            sql += " WHERE c.document_url = ?"
            params = (document_url,)
        sql += " ORDER BY c.rowid"

        with self._connection() as conn:
            try:
                rows = conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to read chunks: {e}") from e

        return [
            StoredChunk(
                chunk=Chunk(
                    chunk_id=row[0],
                    document_url=row[1],
                    content=row[2],
                    title=row[3],
                    start_offset=row[4],
                    end_offset=row[5],
                    token_count=row[6],
                ),
                created_at=row[7],
                updated_at=row[8],
            )
            for row in rows
        ]

    def get_embedding(self, chunk_id: str) -> tuple[float, ...] | None:
        """Return the stored vector for ``chunk_id``, or None if absent."""
        with self._connection() as conn:
            try:
                row = conn.execute(
                    "SELECT embedding FROM embeddings WHERE chunk_id = ?", (chunk_id,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to read embedding for {chunk_id}: {e}") from e
        if row is None:
            return None
        return tuple(float(v) for v in decode_vector(row[0]))

    def get_stats(self) -> StoreStats:
        """Return the current chunk count and the fixed dimensionality."""
        with self._connection() as conn:
            try:
                (count,) = conn.execute("SELECT COUNT(*) FROM chunks").fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to get vector store statistics: {e}") from e
        return StoreStats(chunk_count=count, dimensions=self._dimensions)

    def clear(self) -> None:
        """Delete all chunks and embeddings. Irreversible."""
        with self._connection() as conn:
            try:
                with conn:
                    conn.execute("DELETE FROM embeddings")
                    conn.execute("DELETE FROM chunks")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to clear vector store: {e}") from e
        logger.info("Cleared vector store at %s", self._path)

    def close(self) -> None:
        """Close the database handle. Calling it again is a no-op."""
        with self._lock:
            if self._closed:
                return
            try:
                self._conn.close()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to close vector store: {e}") from e
            finally:
                self._closed = True
        logger.debug("Vector store at %s closed", self._path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Hold the store lock and yield the open connection.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        with self._lock:
            if self._closed:
                raise StoreClosedError(f"Vector store at {self._path} is closed")
            yield self._conn

    def _check_dimensions(self) -> None:
        """Record the dimensionality on first open; reject a mismatch later."""
        try:
            with self._conn:
                row = self._conn.execute(
                    "SELECT value FROM store_meta WHERE key = 'dimensions'"
                ).fetchone()
                if row is None:
                    self._conn.execute(
                        "INSERT INTO store_meta (key, value) VALUES ('dimensions', ?)",
                        (str(self._dimensions),),
                    )
        except sqlite3.Error as e:
            self._conn.close()
            self._closed = True
            raise StoreError(f"Failed to read store metadata at {self._path}: {e}") from e

        if row is not None and int(row[0]) != self._dimensions:
            self._conn.close()
            self._closed = True
            raise ConfigError(
                f"Vector store at {self._path} holds {row[0]}-dimensional embeddings, "
                f"opened with dimensions={self._dimensions}"
            )
