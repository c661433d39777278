"""Vector store — SQLite persistence with exact cosine-similarity search."""

from docrag.store.base import BaseStore
from docrag.store.similarity import cosine_similarity
from docrag.store.sqlite import SQLiteVectorStore

__all__ = ["BaseStore", "SQLiteVectorStore", "cosine_similarity"]
