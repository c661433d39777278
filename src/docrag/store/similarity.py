"""Cosine similarity and embedding byte encoding."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["EMBEDDING_DTYPE", "cosine_scores", "cosine_similarity", "decode_vector", "encode_vector"]

# Little-endian float64: exact round-trip for Python floats
EMBEDDING_DTYPE = np.dtype("<f8")


def encode_vector(vector: Sequence[float]) -> bytes:
    """Encode a vector as a fixed-width little-endian float buffer."""
    return np.asarray(vector, dtype=EMBEDDING_DTYPE).tobytes()


def decode_vector(blob: bytes) -> np.ndarray:
    """Decode a buffer written by :func:`encode_vector`."""
    return np.frombuffer(blob, dtype=EMBEDDING_DTYPE)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero magnitude.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vectors must have the same length: {va.shape} vs {vb.shape}")
    return float(cosine_scores(va, vb.reshape(1, -1))[0])


def cosine_scores(query: Sequence[float] | np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against every row of ``matrix``.

    Rows (or a query) with zero magnitude score 0.0. Scores are clipped to
    [-1, 1] to absorb floating-point drift.
    """
    q = np.asarray(query, dtype=np.float64)
    if matrix.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)

    dots = matrix @ q
    denom = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    scores = np.zeros(matrix.shape[0], dtype=np.float64)
    np.divide(dots, denom, out=scores, where=denom != 0)
    return np.clip(scores, -1.0, 1.0)
