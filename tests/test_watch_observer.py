"""Tests for the watchdog to asyncio bridge."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from storysync.infrastructure.watch_observer import WatchObserver


class _StubObserver:
    """Stands in for ``watchdog.observers.Observer`` without a native thread."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[Any, str, bool]] = []
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler: Any, path: str, recursive: bool = False) -> None:
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True


class _Recorder:
    def __init__(self, expected: int) -> None:
        self.events: list[tuple[Path, str]] = []
        self._expected = expected
        self.done = asyncio.Event()

    async def __call__(self, path: Path, kind: str) -> None:
        self.events.append((path, kind))
        if len(self.events) >= self._expected:
            self.done.set()


async def _started(
    tmp_path: Path, recorder: Any, **kwargs: Any
) -> tuple[WatchObserver, _StubObserver, Any]:
    stub = _StubObserver()
    watcher = WatchObserver(
        tmp_path, recorder, loop=asyncio.get_running_loop(), observer=stub, **kwargs
    )
    watcher.start()
    handler, path, recursive = stub.scheduled[0]
    assert path == str(tmp_path)
    assert recursive is True
    assert stub.started
    return watcher, stub, handler


@pytest.mark.asyncio
async def test_file_events_map_to_change_kinds(tmp_path: Path) -> None:
    recorder = _Recorder(expected=3)
    watcher, _stub, handler = await _started(tmp_path, recorder)

    handler.on_created(FileCreatedEvent(str(tmp_path / "a.svg")))
    handler.on_modified(FileModifiedEvent(str(tmp_path / "a.svg")))
    handler.on_deleted(FileDeletedEvent(str(tmp_path / "a.svg")))
    await asyncio.wait_for(recorder.done.wait(), timeout=1)
    await watcher.stop()

    assert recorder.events == [
        (tmp_path / "a.svg", "create"),
        (tmp_path / "a.svg", "update"),
        (tmp_path / "a.svg", "delete"),
    ]


@pytest.mark.asyncio
async def test_move_is_delete_then_create(tmp_path: Path) -> None:
    recorder = _Recorder(expected=2)
    watcher, _stub, handler = await _started(tmp_path, recorder)

    handler.on_moved(FileMovedEvent(str(tmp_path / "old.svg"), str(tmp_path / "new.svg")))
    await asyncio.wait_for(recorder.done.wait(), timeout=1)
    await watcher.stop()

    assert recorder.events == [
        (tmp_path / "old.svg", "delete"),
        (tmp_path / "new.svg", "create"),
    ]


@pytest.mark.asyncio
async def test_directories_and_rejected_paths_are_dropped(tmp_path: Path) -> None:
    recorder = _Recorder(expected=1)
    watcher, _stub, handler = await _started(
        tmp_path, recorder, accepts=lambda path: path.endswith(".svg")
    )

    handler.on_created(DirCreatedEvent(str(tmp_path / "icons")))
    handler.on_created(FileCreatedEvent(str(tmp_path / "notes.txt")))
    handler.on_created(FileCreatedEvent(str(tmp_path / "kept.svg")))
    await asyncio.wait_for(recorder.done.wait(), timeout=1)
    await watcher.stop()

    assert recorder.events == [(tmp_path / "kept.svg", "create")]


@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_the_worker(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    seen: list[Path] = []
    done = asyncio.Event()

    async def callback(path: Path, kind: str) -> None:
        seen.append(path)
        if path.name == "bad.svg":
            raise RuntimeError("boom")
        done.set()

    watcher, _stub, handler = await _started(tmp_path, callback)

    with caplog.at_level("ERROR"):
        handler.on_created(FileCreatedEvent(str(tmp_path / "bad.svg")))
        handler.on_created(FileCreatedEvent(str(tmp_path / "good.svg")))
        await asyncio.wait_for(done.wait(), timeout=1)
    await watcher.stop()

    assert [path.name for path in seen] == ["bad.svg", "good.svg"]
    assert "failed" in caplog.text


@pytest.mark.asyncio
async def test_stop_shuts_the_observer_down(tmp_path: Path) -> None:
    recorder = _Recorder(expected=1)
    watcher, stub, handler = await _started(tmp_path, recorder)

    await watcher.stop()
    await watcher.stop()
    handler.on_created(FileCreatedEvent(str(tmp_path / "late.svg")))
    await asyncio.sleep(0)

    assert stub.stopped and stub.joined
    assert recorder.events == []
