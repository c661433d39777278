"""docrag — document chunking and exact vector search for retrieval."""

__version__ = "0.1.0"
