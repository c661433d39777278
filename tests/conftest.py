"""Shared fixtures for docrag tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docrag.config import DocragConfig, save_config
from docrag.manifest import Manifest, save_manifest
from docrag.project import CONFIG_FILE, DATA_DIR, MANIFEST_FILE
from docrag.store import SQLiteVectorStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SQLiteVectorStore]:
    """A 3-dimensional vector store in a temporary directory."""
    s = SQLiteVectorStore(tmp_path / "index.db", dimensions=3)
    yield s
    s.close()


@pytest.fixture
def initialized_project(tmp_path: Path) -> Path:
    """A temporary project with .docrag/ already initialized (3-dim embeddings)."""
    data_dir = tmp_path / DATA_DIR
    data_dir.mkdir()

    config = DocragConfig()
    config.project.name = "test-project"
    config.embedding.dimensions = 3
    save_config(config, data_dir / CONFIG_FILE)
    save_manifest(Manifest(), data_dir / MANIFEST_FILE)

    return tmp_path


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty directory to initialize a project in."""
    d = tmp_path / "project"
    d.mkdir()
    return d
