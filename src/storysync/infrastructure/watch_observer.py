"""watchdog-backed filesystem subscription feeding an asyncio handler.

watchdog delivers events on its observer thread. They are handed to the event
loop with ``call_soon_threadsafe`` and drained by a single worker task, so
icon events are applied one at a time and two changes never race on the same
story file.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..story.icons import IconChangeKind

__all__ = ["WatchObserver"]

LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[Path, IconChangeKind], Awaitable[Any]]


class _ForwardingHandler(FileSystemEventHandler):
    def __init__(self, owner: "WatchObserver") -> None:
        super().__init__()
        self._owner = owner

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileCreatedEvent):
            self._owner.dispatch(event.src_path, "create")

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileModifiedEvent):
            self._owner.dispatch(event.src_path, "update")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileDeletedEvent):
            self._owner.dispatch(event.src_path, "delete")

    def on_moved(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileMovedEvent):
            self._owner.dispatch(event.src_path, "delete")
            self._owner.dispatch(event.dest_path, "create")


class WatchObserver:
    """Recursive watch on ``root`` that awaits ``callback(path, kind)`` per event."""

    def __init__(
        self,
        root: Path | str,
        callback: EventCallback,
        *,
        accepts: Callable[[str], bool] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        observer: Any | None = None,
    ) -> None:
        self._root = Path(root)
        self._callback = callback
        self._accepts = accepts or (lambda _path: True)
        self._loop = loop or asyncio.get_running_loop()
        self._observer = observer or Observer()
        self._queue: asyncio.Queue[tuple[Path, IconChangeKind]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    def start(self) -> None:
        self._observer.schedule(_ForwardingHandler(self), str(self._root), recursive=True)
        self._observer.start()
        self._worker = self._loop.create_task(self._drain_queue())

    async def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        await asyncio.to_thread(self._observer.join)
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker

    def dispatch(self, raw_path: str | bytes, kind: IconChangeKind) -> None:
        """Queue an event; callable from any thread."""
        path = raw_path.decode() if isinstance(raw_path, bytes) else raw_path
        if self._closed or not self._accepts(path):
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (Path(path), kind))

    async def _drain_queue(self) -> None:
        while True:
            path, kind = await self._queue.get()
            try:
                await self._callback(path, kind)
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Icon event %s for %s failed", kind, path)
            finally:
                self._queue.task_done()
