"""Configuration system for docrag.

Manages project configuration via .docrag/config.toml with typed dataclasses
and sensible defaults for all values.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import tomli_w

from docrag.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "ChunkConfig",
    "DocragConfig",
    "EmbeddingConfig",
    "ProjectConfig",
    "SearchConfig",
    "StoreConfig",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)

MAX_TOP_K = 1000


@dataclass
class ProjectConfig:
    """[project] section."""

    name: str = ""


@dataclass
class ChunkConfig:
    """[chunk] section."""

    min_tokens: int = 500
    max_tokens: int = 1000
    overlap_tokens: int = 75

    def validate(self) -> None:
        """Check the token thresholds against each other.

        Raises:
            ConfigError: If the thresholds are inconsistent.
        """
        if self.min_tokens >= self.max_tokens:
            raise ConfigError(
                f"min_tokens ({self.min_tokens}) must be less than "
                f"max_tokens ({self.max_tokens})"
            )
        if self.overlap_tokens >= self.min_tokens:
            raise ConfigError(
                f"overlap_tokens ({self.overlap_tokens}) must be less than "
                f"min_tokens ({self.min_tokens})"
            )
        if self.overlap_tokens < 0:
            raise ConfigError(f"overlap_tokens must be non-negative, got {self.overlap_tokens}")


@dataclass
class EmbeddingConfig:
    """[embedding] section."""

    provider: str = "ollama"
    model: str = "nomic-embed-text"
    base_url: str = ""
    api_key_env: str = ""
    batch_size: int = 64
    dimensions: int = 768


@dataclass
class StoreConfig:
    """[store] section."""

    path: str = "index.db"


@dataclass
class SearchConfig:
    """[search] section."""

    top_k: int = 5


@dataclass
class DocragConfig:
    """Root configuration combining all sections."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    chunk: ChunkConfig = field(default_factory=ChunkConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)


_SECTIONS: dict[str, type] = {
    "project": ProjectConfig,
    "chunk": ChunkConfig,
    "embedding": EmbeddingConfig,
    "store": StoreConfig,
    "search": SearchConfig,
}


def default_config() -> DocragConfig:
    """Return a config with all default values."""
    return DocragConfig()


def _config_to_dict(config: DocragConfig) -> dict[str, object]:
    """Convert DocragConfig to a nested dict suitable for TOML serialization."""
    return {name: dict(vars(getattr(config, name))) for name in _SECTIONS}


def save_config(config: DocragConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: dict[str, object]) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    return cls(**filtered)


def load_config(path: Path) -> DocragConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values. The chunk section is
    validated immediately so bad thresholds fail at load time.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = DocragConfig()
    for name, cls in _SECTIONS.items():
        if name in data:
            setattr(config, name, _load_section(cls, data[name]))

    config.chunk.validate()
    if config.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {config.embedding.dimensions}")
    if not 1 <= config.search.top_k <= MAX_TOP_K:
        raise ConfigError(f"search.top_k must be between 1 and {MAX_TOP_K}")

    logger.info("Loaded config from %s", path)
    return config
