"""Messages exchanged with a render surface.

Payloads are plain mappings with a ``TYPE`` discriminator, the shape the
surface posts over its message channel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Union

from ..errors import UnknownCommand

__all__ = [
    "InitializeWebviewCommand",
    "SyncDocumentCommand",
    "DisplayDomainStoryCommand",
    "Command",
    "parse_command",
]


@dataclass(slots=True, frozen=True)
class InitializeWebviewCommand:
    """The surface finished loading and asks for the current content."""

    TYPE: ClassVar[str] = "initializeWebviewCommand"
    session_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"TYPE": self.TYPE, "sessionId": self.session_id}


@dataclass(slots=True, frozen=True)
class SyncDocumentCommand:
    """The surface edited the story and sends its full serialized content."""

    TYPE: ClassVar[str] = "syncDocumentCommand"
    session_id: str
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"TYPE": self.TYPE, "sessionId": self.session_id, "text": self.text}


@dataclass(slots=True, frozen=True)
class DisplayDomainStoryCommand:
    """Sent to the surface to replace what it shows."""

    TYPE: ClassVar[str] = "displayDomainStoryCommand"
    session_id: str
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"TYPE": self.TYPE, "sessionId": self.session_id, "text": self.text}


Command = Union[InitializeWebviewCommand, SyncDocumentCommand, DisplayDomainStoryCommand]


def parse_command(payload: Mapping[str, Any]) -> Command:
    """Build a command from a surface payload.

    ``sessionId`` is preferred; ``editorId`` is accepted for older surfaces.

    Raises:
        UnknownCommand: ``TYPE`` is missing or not recognised.
    """

    if not isinstance(payload, Mapping):
        raise UnknownCommand(payload)
    type_name = payload.get("TYPE")
    session_id = payload.get("sessionId", payload.get("editorId"))
    if type_name == InitializeWebviewCommand.TYPE:
        return InitializeWebviewCommand(session_id=session_id)
    if type_name == SyncDocumentCommand.TYPE:
        return SyncDocumentCommand(session_id=str(session_id), text=str(payload.get("text") or ""))
    if type_name == DisplayDomainStoryCommand.TYPE:
        return DisplayDomainStoryCommand(
            session_id=str(session_id), text=str(payload.get("text") or "")
        )
    raise UnknownCommand(dict(payload))
