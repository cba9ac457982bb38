"""Startup repair pass: fold every icon visible to a story into its text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..events import EventBus, StoryIconsRepaired
from ..services.settings import Settings
from ..story.icons import Icon, try_parse_icon_path
from ..story.reconciler import sync_from_set
from .ports import WorkspaceFiles
from .scope import is_within, layout_from_settings

__all__ = ["ReadIconService"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _ScopedIcon:
    depth: int
    path: Path
    icon: Icon


class ReadIconService:
    """Collect the icons in a story's scope and merge them into the story."""

    def __init__(
        self,
        files: WorkspaceFiles,
        settings: Settings | None = None,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        self._files = files
        self._settings = settings or Settings()
        self._layout = layout_from_settings(self._settings)
        self._bus = event_bus

    async def read(
        self,
        workspace_root: Path,
        document_path: Path,
        current_text: str | None,
    ) -> str:
        """Return ``current_text`` with every visible icon upserted.

        Raises:
            MalformedDocument: ``current_text`` is not blank and not a story.
        """
        icons = await self.collect_icons(workspace_root, document_path)
        repaired = sync_from_set(current_text, icons)
        changed = repaired != (current_text or "")
        LOGGER.debug(
            "ReadIconService.read: %s, icons=%d, changed=%s",
            document_path,
            len(icons),
            changed,
        )
        if self._bus is not None:
            self._bus.publish(
                StoryIconsRepaired(
                    document_path=str(document_path),
                    icon_count=len(icons),
                    changed=changed,
                )
            )
        return repaired

    async def collect_icons(self, workspace_root: Path, document_path: Path) -> list[Icon]:
        """Icons whose scope contains ``document_path``, ordered for merging.

        Under the ``"nearest"`` policy icons from outer scopes come first so a
        same-named icon in a nearer scope is applied last and wins. Relative
        paths are resolved against the current directory.
        """
        root = Path(workspace_root).resolve()
        document_dir = Path(document_path).resolve().parent
        icon_paths = await self._files.find_files(root, self._settings.icon_glob)

        scoped: list[_ScopedIcon] = []
        for icon_path in icon_paths:
            base = self._layout.base_directory(str(icon_path))
            if base is None:
                continue
            base_dir = Path(base)
            if not is_within(base_dir, root) or not is_within(document_dir, base_dir):
                continue
            meta = try_parse_icon_path(str(icon_path), self._layout)
            if meta is None:
                LOGGER.debug("Skipping unparseable icon path %s", icon_path)
                continue
            svg = await self._files.read_text(icon_path)
            if not svg.strip():
                LOGGER.debug("Skipping blank icon file %s", icon_path)
                continue
            scoped.append(
                _ScopedIcon(
                    depth=len(base_dir.parts),
                    path=icon_path,
                    icon=Icon(type=meta.type, name=meta.name, svg=svg),
                )
            )

        if self._settings.scope_policy == "nearest":
            scoped.sort(key=lambda entry: (entry.depth, str(entry.path)))
        return [entry.icon for entry in scoped]
