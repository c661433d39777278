"""Embedding provider for servers speaking the OpenAI ``/embeddings`` API.

Covers OpenAI itself as well as local gateways such as LiteLLM or vLLM.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from docrag.embed.base import BaseEmbedder
from docrag.embed.http import post_json
from docrag.exceptions import EmbeddingError

if TYPE_CHECKING:
    from docrag.config import DocragConfig

__all__ = ["OpenAICompatEmbedder"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatEmbedder(BaseEmbedder):
    """Embeds text through an OpenAI-compatible endpoint.

    The bearer token is read from the environment variable named by
    ``[embedding] api_key_env``; an empty name sends no Authorization header.
    """

    def __init__(self, config: DocragConfig) -> None:
        super().__init__(config.embedding.dimensions, config.embedding.batch_size)
        self.model = config.embedding.model
        base_url = (config.embedding.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self.url = f"{base_url}/embeddings"

        self._headers: dict[str, str] = {}
        key_var = config.embedding.api_key_env
        if key_var:
            api_key = os.environ.get(key_var)
            if api_key:
                self._headers["Authorization"] = f"Bearer {api_key}"
            else:
                logger.warning("API key env var %s is not set; requests may fail", key_var)

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        data = post_json(
            self.url,
            {"model": self.model, "input": texts},
            service="Embedding API",
            headers=self._headers,
        )
        items = data.get("data", [])
        # Items carry their input position; servers may answer out of order
        if items and all(isinstance(item, dict) and "index" in item for item in items):
            items = sorted(items, key=lambda item: item["index"])

        try:
            return [item["embedding"] for item in items]
        except (KeyError, TypeError) as e:
            raise EmbeddingError(
                f"Unexpected response format from {self.url}: missing 'embedding' field"
            ) from e
