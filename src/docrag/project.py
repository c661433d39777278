"""The ``.docrag/`` project directory.

A project is any directory holding ``.docrag/config.toml`` and
``.docrag/manifest.json``. Commands run from a subdirectory find it by
walking up, the way git finds ``.git/``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from docrag.config import DocragConfig, default_config, load_config, save_config
from docrag.manifest import Manifest, load_manifest, save_manifest

__all__ = [
    "CONFIG_FILE",
    "DATA_DIR",
    "MANIFEST_FILE",
    "Project",
    "ProjectStatus",
]

logger = logging.getLogger(__name__)

DATA_DIR = ".docrag"
CONFIG_FILE = "config.toml"
MANIFEST_FILE = "manifest.json"


@dataclass(frozen=True)
class ProjectStatus:
    """What an initialized project holds, read from its manifest."""

    root: Path
    config: DocragConfig
    documents: int
    chunks: int
    store_path: Path


class Project:
    """Paths and lifecycle of one docrag project rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.data_dir = root / DATA_DIR
        self.config_path = self.data_dir / CONFIG_FILE
        self.manifest_path = self.data_dir / MANIFEST_FILE

    @classmethod
    def discover(cls, start: Path | None = None) -> Project:
        """Project of the nearest directory at or above ``start`` with a ``.docrag/``.

        Falls back to ``start`` itself (the working directory by default)
        when no ancestor has one.
        """
        origin = (start or Path.cwd()).resolve()
        for candidate in (origin, *origin.parents):
            if (candidate / DATA_DIR).is_dir():
                return cls(candidate)
        return cls(origin)

    @property
    def is_initialized(self) -> bool:
        return self.config_path.is_file() and self.manifest_path.is_file()

    def load_config(self) -> DocragConfig:
        """Read ``config.toml``. Raises ConfigError if it is missing or invalid."""
        return load_config(self.config_path)

    def store_path(self, config: DocragConfig) -> Path:
        """Database path from ``[store] path``; relative paths sit in ``.docrag/``."""
        path = Path(config.store.path)
        if path.is_absolute():
            return path
        return self.data_dir / path

    def init(self, name: str = "", dimensions: int | None = None) -> Path:
        """Create ``.docrag/`` with a config and an empty manifest.

        Re-running keeps an existing config and manifest; only explicitly
        passed values are written over the config. Returns the data dir.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)

        config = self.load_config() if self.config_path.exists() else default_config()
        if name or not config.project.name:
            config.project.name = name or self.root.name
        if dimensions is not None:
            config.embedding.dimensions = dimensions
        save_config(config, self.config_path)

        if not self.manifest_path.exists():
            save_manifest(Manifest(), self.manifest_path)

        logger.info("Initialized docrag project at %s", self.data_dir)
        return self.data_dir

    def status(self) -> ProjectStatus | None:
        """Document and chunk totals from the manifest; None if not initialized."""
        if not self.is_initialized:
            return None

        config = self.load_config()
        manifest = load_manifest(self.manifest_path)
        return ProjectStatus(
            root=self.root,
            config=config,
            documents=len(manifest.documents),
            chunks=sum(entry.chunks for entry in manifest.documents),
            store_path=self.store_path(config),
        )
