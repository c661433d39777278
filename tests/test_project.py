"""Tests for docrag.project module."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docrag.config import load_config, save_config
from docrag.exceptions import ConfigError
from docrag.manifest import load_manifest, make_entry, save_manifest
from docrag.project import (
    CONFIG_FILE,
    DATA_DIR,
    MANIFEST_FILE,
    Project,
)
from docrag.types import Document

if TYPE_CHECKING:
    from pathlib import Path


class TestProjectInit:
    def test_creates_data_directory(self, project_dir: Path):
        data_dir = Project(project_dir).init()
        assert data_dir == project_dir / DATA_DIR
        assert data_dir.is_dir()

    def test_creates_valid_config(self, project_dir: Path):
        Project(project_dir).init()
        config = load_config(project_dir / DATA_DIR / CONFIG_FILE)
        assert config.embedding.model == "nomic-embed-text"

    def test_creates_empty_manifest(self, project_dir: Path):
        Project(project_dir).init()
        manifest = load_manifest(project_dir / DATA_DIR / MANIFEST_FILE)
        assert manifest.documents == []

    def test_name_defaults_to_directory(self, project_dir: Path):
        Project(project_dir).init()
        config = load_config(project_dir / DATA_DIR / CONFIG_FILE)
        assert config.project.name == "project"

    def test_explicit_name_and_dimensions(self, project_dir: Path):
        Project(project_dir).init(name="handbook", dimensions=384)
        config = load_config(project_dir / DATA_DIR / CONFIG_FILE)
        assert config.project.name == "handbook"
        assert config.embedding.dimensions == 384

    def test_idempotent_keeps_existing_config(self, project_dir: Path):
        project = Project(project_dir)
        project.init()
        config = load_config(project.config_path)
        config.embedding.model = "custom-model"
        save_config(config, project.config_path)

        project.init()
        assert load_config(project.config_path).embedding.model == "custom-model"

    def test_idempotent_keeps_manifest(self, project_dir: Path):
        project = Project(project_dir)
        project.init()
        manifest = load_manifest(project.manifest_path)
        doc = Document.from_text(url="file:///a.md", title="A", content="a")
        manifest.add_document(make_entry(doc, chunks=1))
        save_manifest(manifest, project.manifest_path)

        project.init()
        assert len(load_manifest(project.manifest_path).documents) == 1


class TestProjectStatus:
    def test_uninitialized_is_none(self, project_dir: Path):
        assert Project(project_dir).status() is None

    def test_counts_from_manifest(self, initialized_project: Path):
        project = Project(initialized_project)
        manifest = load_manifest(project.manifest_path)
        for name, chunks in (("a", 2), ("b", 5)):
            doc = Document.from_text(url=f"file:///{name}.md", title=name, content=name)
            manifest.add_document(make_entry(doc, chunks=chunks))
        save_manifest(manifest, project.manifest_path)

        st = project.status()
        assert st is not None
        assert st.root == initialized_project
        assert (st.documents, st.chunks) == (2, 7)
        assert st.config.project.name == "test-project"
        assert st.store_path == initialized_project / DATA_DIR / "index.db"

    def test_invalid_config_raises(self, initialized_project: Path):
        (initialized_project / DATA_DIR / CONFIG_FILE).write_text("[embedding]\ndimensions = 0\n")
        with pytest.raises(ConfigError):
            Project(initialized_project).status()


class TestStorePath:
    def test_relative_path_under_data_dir(self, initialized_project: Path):
        project = Project(initialized_project)
        config = project.load_config()
        assert project.store_path(config) == initialized_project / DATA_DIR / "index.db"

    def test_absolute_path_kept(self, initialized_project: Path, tmp_path: Path):
        project = Project(initialized_project)
        config = project.load_config()
        config.store.path = str(tmp_path / "elsewhere.db")
        assert project.store_path(config) == tmp_path / "elsewhere.db"


class TestDiscover:
    def test_finds_root_from_subdirectory(self, initialized_project: Path):
        sub = initialized_project / "docs" / "deep"
        sub.mkdir(parents=True)
        project = Project.discover(sub)
        assert project.root == initialized_project.resolve()
        assert project.is_initialized

    def test_falls_back_to_start(self, project_dir: Path):
        project = Project.discover(project_dir)
        assert project.root == project_dir.resolve()
        assert not project.is_initialized

    def test_defaults_to_working_directory(
        self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(initialized_project)
        assert Project.discover().root == initialized_project.resolve()
