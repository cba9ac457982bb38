"""Session synchronization coordinator.

Keeps the text host's document and every render surface showing it in step
without echo loops. Each open editor gets its own session entry with a guard
counter: while :meth:`SessionCoordinator.sync_from_webview` writes render
surface content into the document store, the store's resulting change
notification reaches :meth:`SessionCoordinator.on_document_changed` with the
guard raised and is dropped instead of being displayed again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from ..events import ContentUpdated, EventBus, SessionDisposed, SessionRegistered
from .editor_session import EditorSession
from .ports import DocumentPort, RenderSurfacePort

__all__ = ["SessionCoordinator", "SessionState"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionState:
    """Coordinator-owned state for one registered session.

    Attributes:
        guard: Number of in-flight remote syncs; 0 means idle.
        session: The aggregate holding the current content.
        surface: Render surface supplied at registration.
    """

    session: EditorSession
    surface: RenderSurfacePort
    guard: int = 0


class SessionCoordinator:
    """Registry of edit sessions and the document/render-surface sync protocol.

    Operations on an unknown session id are no-ops: disposal races with
    in-flight messages are expected and harmless.
    """

    def __init__(self, documents: DocumentPort, *, event_bus: EventBus | None = None) -> None:
        """Initialize the coordinator.

        Args:
            documents: Port used to write render surface content back to the
                authoritative document.
            event_bus: Optional bus receiving session lifecycle and content
                events.
        """
        self._documents = documents
        self._bus = event_bus
        self._sessions: dict[str, SessionState] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_session(
        self,
        document_id: str,
        initial_text: str,
        surface: RenderSurfacePort,
    ) -> str:
        """Register a new session and return its id.

        The id is ``f"{document_id}:{n}"`` with ``n`` the smallest positive
        integer not currently in use, so several editors can be open on one
        document without sharing state.
        """
        index = 1
        session_id = f"{document_id}:{index}"
        while session_id in self._sessions:
            index += 1
            session_id = f"{document_id}:{index}"

        self._sessions[session_id] = SessionState(
            session=EditorSession(document_id, initial_text),
            surface=surface,
        )
        LOGGER.debug(
            "SessionCoordinator.register_session: session_id=%s, length=%d",
            session_id,
            len(initial_text),
        )
        self._publish(SessionRegistered(session_id=session_id, document_id=document_id))
        return session_id

    def dispose(self, session_id: str) -> None:
        """Forget ``session_id``; unknown ids are ignored."""
        state = self._sessions.pop(session_id, None)
        if state is None:
            LOGGER.debug("SessionCoordinator.dispose: unknown session_id=%s", session_id)
            return
        LOGGER.debug("SessionCoordinator.dispose: session_id=%s", session_id)
        self._publish(SessionDisposed(session_id=session_id, document_id=state.session.id))

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    async def initialize(self, session_id: str) -> None:
        """Show the session's current content on its render surface."""
        state = self._sessions.get(session_id)
        if state is None:
            LOGGER.debug("SessionCoordinator.initialize: unknown session_id=%s", session_id)
            return
        await state.surface.display(session_id, state.session.snapshot())

    async def sync_from_webview(self, session_id: str, text: str) -> None:
        """Write render surface content to the document store.

        The guard stays raised for the whole write, and is lowered again even
        when the write fails; the failure itself propagates to the caller.
        """
        state = self._sessions.get(session_id)
        if state is None:
            LOGGER.debug(
                "SessionCoordinator.sync_from_webview: unknown session_id=%s", session_id
            )
            return

        state.guard += 1
        try:
            event = state.session.apply_remote_sync(text)
            self._publish_content(session_id, event)
            await self._documents.write(state.session.id, text)
        finally:
            state.guard -= 1

    async def on_document_changed(self, session_id: str, text: str) -> None:
        """Forward a document change to the render surface unless it is our own echo."""
        state = self._sessions.get(session_id)
        if state is None:
            return
        if state.guard > 0:
            LOGGER.debug(
                "SessionCoordinator.on_document_changed: suppressed echo for %s (guard=%d)",
                session_id,
                state.guard,
            )
            return

        event = state.session.apply_local_change(text)
        self._publish_content(session_id, event)
        await state.surface.display(session_id, text)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> tuple[str, ...]:
        return tuple(self._sessions)

    def sessions_for(self, document_id: str) -> tuple[str, ...]:
        """Return the ids of every live session editing ``document_id``."""
        return tuple(
            session_id
            for session_id, state in self._sessions.items()
            if state.session.id == document_id
        )

    def snapshot(self, session_id: str) -> str | None:
        state = self._sessions.get(session_id)
        return None if state is None else state.session.snapshot()

    def guard_depth(self, session_id: str) -> int | None:
        state = self._sessions.get(session_id)
        return None if state is None else state.guard

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(self.session_ids())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _publish_content(self, session_id: str, event: ContentUpdated) -> None:
        event.session_id = session_id
        self._publish(event)

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)  # type: ignore[arg-type]
