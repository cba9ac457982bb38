"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from storysync.infrastructure.workspace_files import LocalWorkspaceFiles

from tests.helpers import FakeDocumentStore, RecordingSurface


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def files() -> LocalWorkspaceFiles:
    return LocalWorkspaceFiles()
