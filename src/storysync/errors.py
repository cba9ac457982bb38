"""Error types raised by the synchronization core.

Only conditions that indicate a real defect are exceptions. Races such as an
operation on an already disposed session, or an icon file that does not follow
the directory convention, are handled as silent no-ops by the callers.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "StorySyncError",
    "MalformedDocument",
    "SessionMismatch",
    "UnknownCommand",
]


class StorySyncError(Exception):
    """Base class for all storysync errors."""


class MalformedDocument(StorySyncError):
    """Raised when non-blank story text cannot be parsed into a story document.

    Attributes:
        message: Human-readable description of the first problem found.
        line: 1-based line of a JSON syntax error, when known.
    """

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line})"


class SessionMismatch(StorySyncError):
    """Raised when a render surface syncs content for a session it does not own."""

    def __init__(self, received: str, expected: str) -> None:
        super().__init__(f"Session ID mismatch ({received} != {expected})")
        self.received = received
        self.expected = expected


class UnknownCommand(StorySyncError):
    """Raised when a render-surface message carries no recognised ``TYPE``."""

    def __init__(self, payload: Any) -> None:
        type_name = payload.get("TYPE") if isinstance(payload, dict) else None
        super().__init__(f"Unknown render surface command: {type_name!r}")
        self.type_name = type_name
