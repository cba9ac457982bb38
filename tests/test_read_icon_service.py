"""Tests for the startup icon repair pass."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from storysync.errors import MalformedDocument
from storysync.events import EventBus, StoryIconsRepaired
from storysync.icons.read_icon_service import ReadIconService
from storysync.infrastructure.workspace_files import LocalWorkspaceFiles
from storysync.services.settings import Settings
from tests.helpers import write_icon, write_story


@pytest.mark.asyncio
async def test_collects_icons_from_own_and_ancestor_scopes(
    workspace: Path, files: LocalWorkspaceFiles
) -> None:
    write_icon(workspace, "actors", "Customer.svg", "<svg>customer</svg>")
    write_icon(workspace / "team", "work-objects", "Order.svg", "<svg>order</svg>")
    write_icon(workspace / "other", "actors", "Stranger.svg", "<svg>stranger</svg>")
    story = write_story(workspace / "team" / "s.egn")

    text = await ReadIconService(files).read(workspace, story, story.read_text(encoding="utf-8"))

    domain = json.loads(text)["domain"]
    assert domain["actors"] == {"Customer": "<svg>customer</svg>"}
    assert domain["workObjects"] == {"Order": "<svg>order</svg>"}


@pytest.mark.asyncio
async def test_nearest_scope_wins_a_name_collision(
    workspace: Path, files: LocalWorkspaceFiles
) -> None:
    write_icon(workspace, "actors", "Cat.svg", "<svg>outer</svg>")
    write_icon(workspace / "zoo", "actors", "Cat.svg", "<svg>inner</svg>")
    story = workspace / "zoo" / "pen" / "s.egn"

    text = await ReadIconService(files).read(workspace, story, None)

    assert json.loads(text)["domain"]["actors"] == {"Cat": "<svg>inner</svg>"}


@pytest.mark.asyncio
async def test_existing_icons_are_kept(workspace: Path, files: LocalWorkspaceFiles) -> None:
    write_icon(workspace, "actors", "Cat.svg", "<svg>cat</svg>")
    story = write_story(workspace / "s.egn", actors={"Legacy": "<svg>legacy</svg>"})

    text = await ReadIconService(files).read(workspace, story, story.read_text(encoding="utf-8"))

    assert json.loads(text)["domain"]["actors"] == {
        "Legacy": "<svg>legacy</svg>",
        "Cat": "<svg>cat</svg>",
    }


@pytest.mark.asyncio
async def test_blank_and_misplaced_icon_files_are_skipped(
    workspace: Path, files: LocalWorkspaceFiles
) -> None:
    write_icon(workspace, "actors", "Empty.svg", "   ")
    misplaced = workspace / ".egon" / "icons" / "Loose.svg"
    misplaced.write_text("<svg>loose</svg>", encoding="utf-8")

    icons = await ReadIconService(files).collect_icons(workspace, workspace / "s.egn")

    assert icons == []


@pytest.mark.asyncio
async def test_custom_story_layout_from_settings(
    workspace: Path, files: LocalWorkspaceFiles
) -> None:
    settings = Settings(icon_base_path="assets/icons", actor_dir="people")
    icon = workspace / "assets" / "icons" / "people" / "Clerk.svg"
    icon.parent.mkdir(parents=True)
    icon.write_text("<svg>clerk</svg>", encoding="utf-8")

    icons = await ReadIconService(files, settings).collect_icons(workspace, workspace / "s.egn")

    assert [(entry.type.value, entry.name.value) for entry in icons] == [("actors", "Clerk")]


@pytest.mark.asyncio
async def test_publishes_repair_event(workspace: Path, files: LocalWorkspaceFiles) -> None:
    write_icon(workspace, "actors", "Cat.svg", "<svg>cat</svg>")
    bus = EventBus()
    received: list[StoryIconsRepaired] = []
    bus.subscribe(StoryIconsRepaired, received.append)
    service = ReadIconService(files, event_bus=bus)

    text = await service.read(workspace, workspace / "s.egn", "")
    await service.read(workspace, workspace / "s.egn", text)

    assert [(event.icon_count, event.changed) for event in received] == [(1, True), (1, False)]


@pytest.mark.asyncio
async def test_malformed_story_raises(workspace: Path, files: LocalWorkspaceFiles) -> None:
    write_icon(workspace, "actors", "Cat.svg", "<svg>cat</svg>")

    with pytest.raises(MalformedDocument):
        await ReadIconService(files).read(workspace, workspace / "s.egn", "{oops")


@pytest.mark.asyncio
async def test_relative_workspace_root_sees_root_scope(
    workspace: Path, files: LocalWorkspaceFiles, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_icon(workspace, "actors", "Cat.svg", "<svg>cat</svg>")
    monkeypatch.chdir(workspace)

    text = await ReadIconService(files).read(Path("."), Path("s.egn"), "")

    assert json.loads(text)["domain"]["actors"] == {"Cat": "<svg>cat</svg>"}
