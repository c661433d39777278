"""Ollama embedding provider (the default).

Talks to a locally running Ollama through its batch ``/api/embed`` endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docrag.embed.base import BaseEmbedder
from docrag.embed.http import post_json
from docrag.exceptions import EmbeddingError

if TYPE_CHECKING:
    from docrag.config import DocragConfig

__all__ = ["OllamaEmbedder"]

_DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaEmbedder(BaseEmbedder):
    """Embeds text with a model served by Ollama, e.g. ``nomic-embed-text``.

    An empty ``[embedding] base_url`` means ``http://localhost:11434``.
    """

    def __init__(self, config: DocragConfig) -> None:
        super().__init__(config.embedding.dimensions, config.embedding.batch_size)
        self.model = config.embedding.model
        base_url = (config.embedding.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self.url = f"{base_url}/api/embed"

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        data = post_json(self.url, {"model": self.model, "input": texts}, service="Ollama")
        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list):
            raise EmbeddingError(f"Ollama response from {self.url} has no 'embeddings' list")
        return embeddings
