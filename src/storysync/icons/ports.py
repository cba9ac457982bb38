"""Filesystem collaborator used by the icon pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

__all__ = ["WorkspaceFiles"]


@runtime_checkable
class WorkspaceFiles(Protocol):
    """Enumerate, read and replace files below a workspace root."""

    async def find_files(self, root: Path, pattern: str) -> list[Path]:  # pragma: no cover - Protocol
        """Return the files under ``root`` matching the glob ``pattern``, sorted."""
        ...

    async def read_text(self, path: Path) -> str:  # pragma: no cover - Protocol
        ...

    async def write_text(self, path: Path, text: str) -> None:  # pragma: no cover - Protocol
        ...

    async def exists(self, path: Path) -> bool:  # pragma: no cover - Protocol
        ...
