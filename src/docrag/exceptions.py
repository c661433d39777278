"""Custom exception hierarchy for docrag."""

from __future__ import annotations

__all__ = [
    "ChunkError",
    "ConfigError",
    "DimensionMismatchError",
    "DocragError",
    "EmbeddingError",
    "ManifestError",
    "ParseError",
    "PipelineError",
    "PluginError",
    "StoreClosedError",
    "StoreError",
    "ValidationError",
]


class DocragError(Exception):
    """Base exception for all docrag errors."""


class ConfigError(DocragError):
    """Raised when configuration loading or validation fails."""


class ManifestError(DocragError):
    """Raised when manifest operations fail."""


class ParseError(DocragError):
    """Raised when a document cannot be loaded."""


class ChunkError(DocragError):
    """Raised when chunking operations fail."""


class EmbeddingError(DocragError):
    """Raised when embedding generation fails."""


class StoreError(DocragError):
    """Raised when vector store operations fail."""


class StoreClosedError(StoreError):
    """Raised when an operation is attempted on a closed store."""


class ValidationError(DocragError):
    """Raised when a call argument is rejected before any work is done."""


class DimensionMismatchError(ValidationError):
    """Raised when a vector's length differs from the store's dimensionality."""

    def __init__(self, expected: int, actual: int, chunk_id: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.chunk_id = chunk_id
        where = f" for chunk {chunk_id}" if chunk_id else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )


class PipelineError(DocragError):
    """Raised when pipeline orchestration fails."""


class PluginError(DocragError):
    """Raised when plugin loading or registration fails."""
