"""Document ingestion — local markdown and text files."""

from docrag.ingest.markdown import MarkdownLoader, iter_documents

__all__ = ["MarkdownLoader", "iter_documents"]
