"""Embedder registry: resolves ``[embedding] provider`` to an embedder.

Built-in providers (``ollama``, ``openai``) register themselves when
``docrag.embed`` is imported; the default registry imports it on first use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docrag.exceptions import PluginError

if TYPE_CHECKING:
    from collections.abc import Callable

    from docrag.config import DocragConfig
    from docrag.embed.base import BaseEmbedder

__all__ = ["EmbedderRegistry", "default_registry"]

logger = logging.getLogger(__name__)


class EmbedderRegistry:
    """Maps provider names to factories taking the project config.

    Usage::

        registry = EmbedderRegistry()
        registry.register("ollama", OllamaEmbedder)
        embedder = registry.create(config)  # uses config.embedding.provider
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._factories: dict[str, Callable[[DocragConfig], BaseEmbedder]] = {}
        self._auto_discover = auto_discover

    def register(self, name: str, factory: Callable[[DocragConfig], BaseEmbedder]) -> None:
        """Register an embedder factory under ``name``.

        Raises:
            PluginError: If ``name`` is already registered.
        """
        if name in self._factories:
            raise PluginError(f"Embedding provider '{name}' is already registered")
        self._factories[name] = factory
        logger.debug("Registered embedding provider %s", name)

    def create(self, config: DocragConfig) -> BaseEmbedder:
        """Build the embedder named by ``config.embedding.provider``.

        Raises:
            PluginError: If no provider of that name is registered.
            EmbeddingError: If the provider rejects the configuration.
        """
        if self._auto_discover:
            self._auto_discover = False
            import docrag.embed  # noqa: F401  (registers built-in providers)

        name = config.embedding.provider
        factory = self._factories.get(name)
        if factory is None:
            raise PluginError(
                f"Unknown embedding provider '{name}'. Available: {sorted(self._factories)}"
            )

        logger.info("Creating %s embedder for model %s", name, config.embedding.model)
        return factory(config)


default_registry = EmbedderRegistry(auto_discover=True)
