"""Live icon watcher: fan single icon file changes out to every story in scope.

Stories are patched straight on disk, not through editor sessions, because
most of them are not open. An open story picks the change up through the
host's normal change notification.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from ..events import EventBus, IconChangeApplied, IconChangeFailed
from ..services.settings import Settings
from ..story.icons import IconChange, IconChangeKind, IconPathMetadata, try_parse_icon_path
from ..story.reconciler import apply_icon_change
from .ports import WorkspaceFiles
from .scope import (
    icon_file_in_scope,
    is_story_affected,
    is_within,
    layout_from_settings,
    scope_chain,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..infrastructure.watch_observer import WatchObserver

__all__ = ["FanOutReport", "IconWatcherController"]

LOGGER = logging.getLogger(__name__)

ObserverFactory = Callable[..., "WatchObserver"]


@dataclass(slots=True)
class FanOutReport:
    """Outcome of handling one icon file event.

    Attributes:
        icon_path: The icon file the event was about.
        kind: ``create``, ``update`` or ``delete``.
        ignored: Why the event was dropped before touching any story, if it was.
        patched: Stories rewritten with the change.
        unchanged: Affected stories whose text already matched.
        shadowed: Stories skipped because a nearer scope defines the icon.
        failed: Stories that could not be patched, with the error message.
    """

    icon_path: Path
    kind: IconChangeKind
    ignored: str | None = None
    patched: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    shadowed: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)


class IconWatcherController:
    """Reacts to icon file notifications below one workspace root."""

    def __init__(
        self,
        workspace_root: Path | str,
        files: WorkspaceFiles,
        settings: Settings | None = None,
        *,
        event_bus: EventBus | None = None,
        observer_factory: ObserverFactory | None = None,
    ) -> None:
        self._root = Path(workspace_root).resolve()
        self._files = files
        self._settings = settings or Settings()
        self._layout = layout_from_settings(self._settings)
        self._bus = event_bus
        self._observer_factory = observer_factory
        self._observer: WatchObserver | None = None

    @property
    def workspace_root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Subscribe to filesystem notifications for icon files."""
        if self._observer is not None:
            return
        factory = self._observer_factory
        if factory is None:
            from ..infrastructure.watch_observer import WatchObserver

            factory = WatchObserver
        self._observer = factory(
            self._root,
            self.handle,
            accepts=self.accepts,
            loop=loop,
        )
        self._observer.start()
        LOGGER.info("Watching icons below %s", self._root)

    async def stop(self) -> None:
        """Drop the filesystem subscription; safe when not started."""
        observer, self._observer = self._observer, None
        if observer is not None:
            await observer.stop()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def accepts(self, path: str) -> bool:
        """Cheap pre-filter used by the observer before queueing an event."""
        return path.endswith(f".{self._settings.icon_extension}") and (
            try_parse_icon_path(path, self._layout) is not None
        )

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    async def handle(self, icon_path: Path | str, kind: IconChangeKind) -> FanOutReport:
        """Apply one icon file event to every affected story file."""
        path = Path(icon_path).resolve()
        report = FanOutReport(icon_path=path, kind=kind)

        meta = try_parse_icon_path(str(path), self._layout)
        if meta is None:
            report.ignored = "unparseable icon path"
            return report
        base = self._layout.base_directory(str(path))
        if base is None or not is_within(Path(base), self._root):
            report.ignored = "outside workspace"
            return report
        base_dir = Path(base)

        svg: str | None = None
        if kind != "delete":
            svg = await self._files.read_text(path)
            if not svg.strip():
                report.ignored = "blank icon file"
                return report

        stories = await self._files.find_files(self._root, self._settings.story_glob)
        affected = [story for story in stories if is_story_affected(story, base_dir)]
        LOGGER.debug(
            "IconWatcherController.handle: %s %s/%s, affected=%d",
            kind,
            meta.type.value,
            meta.name,
            len(affected),
        )

        await asyncio.gather(
            *(
                self._patch_story(story, base_dir, path.name, meta, kind, svg, report)
                for story in affected
            )
        )
        return report

    async def _patch_story(
        self,
        story: Path,
        base_dir: Path,
        file_name: str,
        meta: IconPathMetadata,
        kind: IconChangeKind,
        svg: str | None,
        report: FanOutReport,
    ) -> None:
        try:
            change = await self._effective_change(story, base_dir, file_name, meta, kind, svg)
            if change is None:
                report.shadowed.append(story)
                return
            current = await self._files.read_text(story)
            patched = apply_icon_change(current, change)
            if patched == current:
                report.unchanged.append(story)
                return
            await self._files.write_text(story, patched)
        except Exception as exc:
            LOGGER.warning("Failed to apply icon %s to %s: %s", meta.name, story, exc)
            report.failed[story] = str(exc)
            self._publish(
                IconChangeFailed(document_path=str(story), icon_name=meta.name.value, error=str(exc))
            )
            return

        report.patched.append(story)
        self._publish(
            IconChangeApplied(
                document_path=str(story),
                icon_type=change.type.value,
                icon_name=change.name.value,
                kind=change.kind,
            )
        )

    async def _effective_change(
        self,
        story: Path,
        base_dir: Path,
        file_name: str,
        meta: IconPathMetadata,
        kind: IconChangeKind,
        svg: str | None,
    ) -> IconChange | None:
        """The change ``story`` should see, or ``None`` when a nearer scope wins.

        With the ``"all"`` policy every affected story receives the raw change.
        With ``"nearest"`` a story skips the change when a scope between it and
        ``base_dir`` defines the same icon file, and a deletion falls back to
        the next outer scope's definition when there is one.
        """
        raw = IconChange(type=meta.type, name=meta.name, kind=kind, svg=svg)
        if self._settings.scope_policy != "nearest":
            return raw

        for nearer in scope_chain(story.parent, base_dir)[:-1]:
            candidate = icon_file_in_scope(nearer, self._layout, meta.type, file_name)
            if await self._files.exists(candidate):
                return None

        if kind != "delete":
            return raw

        for outer in scope_chain(base_dir, self._root)[1:]:
            candidate = icon_file_in_scope(outer, self._layout, meta.type, file_name)
            if not await self._files.exists(candidate):
                continue
            fallback = await self._files.read_text(candidate)
            if fallback.strip():
                return IconChange(type=meta.type, name=meta.name, kind="update", svg=fallback)
        return raw

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)  # type: ignore[arg-type]
