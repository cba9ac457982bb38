"""Local-disk implementations of the document and workspace file ports."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..utils import file_io

__all__ = ["FileDocumentPort", "LocalWorkspaceFiles"]

LOGGER = logging.getLogger(__name__)


class LocalWorkspaceFiles:
    """:class:`~storysync.icons.ports.WorkspaceFiles` over the local filesystem.

    Blocking calls run in the default executor so the event loop keeps
    serving session messages during large scans.
    """

    async def find_files(self, root: Path, pattern: str) -> list[Path]:
        return await asyncio.to_thread(_glob_files, Path(root), pattern)

    async def read_text(self, path: Path) -> str:
        return await asyncio.to_thread(file_io.read_text, path)

    async def write_text(self, path: Path, text: str) -> None:
        await asyncio.to_thread(file_io.write_text, path, text)
        LOGGER.debug("Wrote %s (%d chars)", path, len(text))

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(Path(path).is_file)


class FileDocumentPort:
    """:class:`~storysync.sessions.ports.DocumentPort` keyed by file path.

    Suitable for hosts without an in-memory text buffer; hosts that have one
    should write through their own buffer so change notifications fire before
    ``write`` returns.
    """

    async def read(self, document_id: str) -> str:
        path = Path(document_id)
        if not path.exists():
            return ""
        return await asyncio.to_thread(file_io.read_text, path)

    async def write(self, document_id: str, text: str) -> None:
        await asyncio.to_thread(file_io.write_text, Path(document_id), text)


def _glob_files(root: Path, pattern: str) -> list[Path]:
    if not root.is_dir():
        LOGGER.debug("Workspace root %s is not a directory", root)
        return []
    return sorted({path for path in root.glob(pattern) if path.is_file()})
