"""Embedding providers: abstract interface and HTTP-backed implementations."""

from docrag.embed.base import BaseEmbedder
from docrag.embed.ollama import OllamaEmbedder
from docrag.embed.openai_compat import OpenAICompatEmbedder
from docrag.registry import default_registry

__all__ = ["BaseEmbedder", "OllamaEmbedder", "OpenAICompatEmbedder"]

default_registry.register("ollama", OllamaEmbedder)
default_registry.register("openai", OpenAICompatEmbedder)
