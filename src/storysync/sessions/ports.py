"""Ports consumed by the session coordinator.

Hosts implement these; the coordinator never touches files or render surfaces
directly.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

__all__ = ["DocumentPort", "RenderSurfacePort"]


@runtime_checkable
class DocumentPort(Protocol):
    """Authoritative text storage keyed by document identity.

    ``write`` replaces the whole document. Any change notification it causes
    should be delivered before ``write`` returns; a late notification only
    costs one redundant ``display``.
    """

    async def read(self, document_id: str) -> str:  # pragma: no cover - Protocol
        ...

    async def write(self, document_id: str, text: str) -> None:  # pragma: no cover - Protocol
        ...


@runtime_checkable
class RenderSurfacePort(Protocol):
    """A render surface that shows story content; ``display`` must be idempotent."""

    async def display(self, session_id: str, text: str) -> None:  # pragma: no cover - Protocol
        ...
