"""Shared test helpers and stub ports.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Awaitable, Callable

ChangeListener = Callable[[str, str], Awaitable[Any]]


class RecordingSurface:
    """Render surface stub that records every display call."""

    def __init__(self) -> None:
        self.displayed: list[tuple[str, str]] = []

    async def display(self, session_id: str, text: str) -> None:
        self.displayed.append((session_id, text))


class FakeDocumentStore:
    """In-memory document store.

    Listeners run inside :meth:`write` before it returns, the way an editor
    host fires its change notification synchronously with the edit.
    """

    def __init__(self, texts: dict[str, str] | None = None) -> None:
        self.texts: dict[str, str] = dict(texts or {})
        self.writes: list[tuple[str, str]] = []
        self.listeners: list[ChangeListener] = []
        self.fail_with: Exception | None = None

    async def read(self, document_id: str) -> str:
        return self.texts.get(document_id, "")

    async def write(self, document_id: str, text: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.texts[document_id] = text
        self.writes.append((document_id, text))
        for listener in list(self.listeners):
            await listener(document_id, text)


def write_icon(scope_dir: Path, category: str, file_name: str, svg: str) -> Path:
    """Create ``<scope_dir>/.egon/icons/<category>/<file_name>``."""

    target = scope_dir / ".egon" / "icons" / category / file_name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(svg, encoding="utf-8")
    return target


def write_story(
    path: Path,
    *,
    actors: dict[str, str] | None = None,
    work_objects: dict[str, str] | None = None,
    dst: list[Any] | None = None,
) -> Path:
    payload = {
        "domain": {
            "name": "",
            "actors": dict(actors or {}),
            "workObjects": dict(work_objects or {}),
        },
        "dst": list(dst or []),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def story_domain(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))["domain"]
