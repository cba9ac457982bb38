"""Host-side wiring between an opened story, its render surface and the coordinator.

:class:`StoryEditorProvider` is what a text-editing host calls when it opens a
story in a render surface. It repairs the story's icon maps from the icon
directory, registers a session and hands back an :class:`EditorBinding` that
routes surface messages and document change notifications to that session.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping

from ..errors import MalformedDocument, SessionMismatch, UnknownCommand
from ..icons.read_icon_service import ReadIconService
from ..services.settings import Settings
from .coordinator import SessionCoordinator
from .messages import (
    DisplayDomainStoryCommand,
    InitializeWebviewCommand,
    SyncDocumentCommand,
    parse_command,
)
from .ports import DocumentPort, RenderSurfacePort

__all__ = ["EditorBinding", "MessageRenderSurface", "StoryEditorProvider"]

LOGGER = logging.getLogger(__name__)

PostMessage = Callable[[dict[str, Any]], Awaitable[Any]]


class MessageRenderSurface:
    """Render surface that posts :class:`DisplayDomainStoryCommand` payloads."""

    def __init__(self, post_message: PostMessage) -> None:
        self._post_message = post_message

    async def display(self, session_id: str, text: str) -> None:
        command = DisplayDomainStoryCommand(session_id=session_id, text=text)
        await self._post_message(command.to_payload())


class EditorBinding:
    """One opened editor: its session id plus the handlers a host wires up."""

    def __init__(
        self,
        *,
        session_id: str,
        document_id: str,
        coordinator: SessionCoordinator,
        story_extension: str,
    ) -> None:
        self._session_id = session_id
        self._document_id = document_id
        self._coordinator = coordinator
        self._story_extension = story_extension.lstrip(".")
        self._closed = False

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def closed(self) -> bool:
        return self._closed

    async def handle_message(self, payload: Mapping[str, Any]) -> None:
        """Dispatch a message posted by the render surface.

        Raises:
            SessionMismatch: A sync message names a different session. This is
                a wiring defect in the host, not a race, so it is not swallowed.
        """
        try:
            command = parse_command(payload)
        except UnknownCommand as exc:
            LOGGER.debug("EditorBinding.handle_message: ignoring %s", exc)
            return

        LOGGER.debug("Message received -> %s (%s)", command.TYPE, self._session_id)
        if isinstance(command, InitializeWebviewCommand):
            await self._coordinator.initialize(self._session_id)
        elif isinstance(command, SyncDocumentCommand):
            if command.session_id != self._session_id:
                raise SessionMismatch(command.session_id, self._session_id)
            await self._coordinator.sync_from_webview(command.session_id, command.text)
        else:
            LOGGER.debug("EditorBinding.handle_message: %s is outbound only", command.TYPE)
            return
        LOGGER.debug("Message processed -> %s (%s)", command.TYPE, self._session_id)

    async def handle_document_change(
        self,
        document_id: str,
        text: str,
        *,
        has_content_changes: bool = True,
    ) -> None:
        """Forward a host change notification if it concerns this editor's story.

        Hosts broadcast notifications for every open document; anything for
        another document, a non-story file, or without content changes (for
        example a dirty-flag flip) is ignored.
        """
        if self._closed or not has_content_changes:
            return
        if document_id != self._document_id:
            return
        if Path(document_id).suffix.lstrip(".") != self._story_extension:
            return
        await self._coordinator.on_document_changed(self._session_id, text)

    def close(self) -> None:
        """Dispose the session; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._coordinator.dispose(self._session_id)


class StoryEditorProvider:
    """Opens story editors: repair pass, session registration, binding."""

    def __init__(
        self,
        coordinator: SessionCoordinator,
        documents: DocumentPort,
        *,
        icon_reader: ReadIconService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._documents = documents
        self._icon_reader = icon_reader
        self._settings = settings or Settings()

    async def resolve_editor(
        self,
        document_id: str,
        text: str,
        surface: RenderSurfacePort,
        *,
        workspace_root: Path | str | None = None,
    ) -> EditorBinding:
        """Open ``document_id`` in ``surface`` and return the wired binding.

        When the document belongs to a workspace, icons visible from its
        directory are folded into the text first and the repaired text is
        written back, so the session starts from an icon-consistent snapshot.
        A malformed document skips the repair and opens as-is.
        """
        initial_text = text
        if workspace_root is not None and self._icon_reader is not None:
            initial_text = await self._repair(document_id, text, Path(workspace_root))

        session_id = self._coordinator.register_session(document_id, initial_text, surface)
        return EditorBinding(
            session_id=session_id,
            document_id=document_id,
            coordinator=self._coordinator,
            story_extension=self._settings.story_extension,
        )

    async def _repair(self, document_id: str, text: str, workspace_root: Path) -> str:
        assert self._icon_reader is not None
        try:
            repaired = await self._icon_reader.read(workspace_root, Path(document_id), text)
        except (MalformedDocument, OSError) as exc:
            LOGGER.warning("Icon repair skipped for %s: %s", document_id, exc)
            return text
        if repaired != text:
            await self._documents.write(document_id, repaired)
        return repaired
