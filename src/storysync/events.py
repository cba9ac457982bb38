"""Event bus and the events published by the synchronization core.

Sessions report every content mutation as a :class:`ContentUpdated` event and
the icon pipeline reports each story it patches. Hosts subscribe to these for
status reporting; the core itself never depends on a subscriber being present.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Generic, Literal, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]

ContentOrigin = Literal["local", "remote"]


@dataclass(slots=True)
class Event:
    """Base class for all events in the system."""


# =============================================================================
# Session events
# =============================================================================


@dataclass(slots=True)
class SessionRegistered(Event):
    """Emitted when an edit session is registered with the coordinator.

    Attributes:
        session_id: The newly allocated session id (``document_id:n``).
        document_id: The identity of the underlying document.
    """

    session_id: str
    document_id: str


@dataclass(slots=True)
class SessionDisposed(Event):
    """Emitted when a registered session is disposed."""

    session_id: str
    document_id: str


@dataclass(slots=True)
class ContentUpdated(Event):
    """Emitted whenever an editor session's content changes.

    Attributes:
        document_id: The identity of the document the session edits.
        origin: ``"local"`` for edits made in the text host, ``"remote"`` for
            content synced back from the render surface.
        text: The full new content.
        session_id: The session that applied the change; filled in by the
            coordinator before publishing.
    """

    document_id: str
    origin: ContentOrigin
    text: str
    session_id: str | None = None

    @property
    def type(self) -> str:
        return "ContentUpdated"


# =============================================================================
# Icon events
# =============================================================================


@dataclass(slots=True)
class StoryIconsRepaired(Event):
    """Emitted after the startup repair pass folded icons into a story.

    Attributes:
        document_path: The story file that was repaired.
        icon_count: Number of icons found in scope.
        changed: Whether the repaired text differs from the input.
    """

    document_path: str
    icon_count: int
    changed: bool


@dataclass(slots=True)
class IconChangeApplied(Event):
    """Emitted for every story file patched by the live icon watcher."""

    document_path: str
    icon_type: str
    icon_name: str
    kind: str


@dataclass(slots=True)
class IconChangeFailed(Event):
    """Emitted when patching one story file during icon fan-out fails."""

    document_path: str
    icon_name: str
    error: str


class EventBus(Generic[E]):
    """Synchronous publish-subscribe hub keyed by exact event type.

    Bound methods are held through :class:`weakref.WeakMethod`, so a
    controller that goes away drops out of the bus on the next publish
    without having to unsubscribe. Publish from the event loop thread only.

    Example::

        bus = EventBus()
        bus.subscribe(IconChangeApplied, lambda event: print(event.document_path))
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: defaultdict[type[Event], list[_Resolver]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_resolver_for(handler))
        logger.debug(
            "Subscribed %s to %s", _handler_name(handler), event_type.__name__
        )

    def publish(self, event: E) -> None:
        """Deliver ``event`` to its handlers in subscription order.

        A handler that raises is logged and the remaining handlers still run.
        """
        event_type = type(event)
        resolvers = self._handlers.get(event_type)
        if not resolvers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        for resolve in list(resolvers):
            handler = resolve()
            if handler is None:
                resolvers.remove(resolve)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed on %s", _handler_name(handler), event_type.__name__
                )

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()


_Resolver = Callable[[], "Handler | None"]


def _resolver_for(handler: Handler) -> _Resolver:
    # bound methods are weak; plain functions and lambdas stay alive
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        try:
            return WeakMethod(handler)
        except TypeError:
            pass
    return lambda: handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "ContentOrigin",
    "SessionRegistered",
    "SessionDisposed",
    "ContentUpdated",
    "StoryIconsRepaired",
    "IconChangeApplied",
    "IconChangeFailed",
]
