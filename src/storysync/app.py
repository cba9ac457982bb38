"""Command line bootstrap for storysync."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import (
    Any,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    TextIO,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import MalformedDocument
from .events import EventBus, IconChangeApplied, IconChangeFailed
from .icons.icon_watcher import IconWatcherController, ObserverFactory
from .icons.read_icon_service import ReadIconService
from .infrastructure.workspace_files import LocalWorkspaceFiles
from .services.settings import Settings, SettingsStore
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_LOGGER = logging.getLogger(__name__)
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}


def configure_logging(
    debug: bool = False,
    *,
    log_dir: Path | str | None = None,
    quiet_loggers: Iterable[str] = logging_utils.DEFAULT_QUIET_LOGGERS,
    force: bool = False,
) -> Path:
    """Configure structured logging for the command line tools."""

    level = logging.DEBUG if debug else logging.INFO
    log_path = logging_utils.setup_logging(
        level, log_dir=log_dir, quiet_loggers=quiet_loggers, force=force
    )
    _LOGGER.debug("Logging to %s (level=%s)", log_path, logging.getLevelName(level))
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `storysync` console script."""

    args = _parse_cli_args(argv)

    debug = _env_flag("STORYSYNC_DEBUG", default=False)
    settings_path = args.settings_path or os.environ.get("STORYSYNC_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    overrides_mapping: Dict[str, Any] | None = cli_overrides or None
    settings = load_settings(resolved_path, store=settings_store, overrides=overrides_mapping)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return

    if args.command is None:
        print("A command is required: repair or watch.", file=sys.stderr)
        raise SystemExit(2)

    configure_logging(
        debug or settings.debug_logging,
        log_dir=settings.log_dir,
        quiet_loggers=settings.quiet_loggers,
    )

    if args.command == "repair":
        story = Path(args.story).expanduser().resolve()
        workspace = _resolve_workspace(story, args.workspace)
        try:
            changed = asyncio.run(repair_story(story, workspace, settings))
        except MalformedDocument as exc:
            print(f"{story}: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc
        print(f"{story}: {'repaired' if changed else 'up to date'}")
        return

    workspace = Path(args.workspace).expanduser().resolve()
    if not workspace.is_dir():
        print(f"Workspace {workspace} is not a directory.", file=sys.stderr)
        raise SystemExit(2)
    try:
        asyncio.run(watch_workspace(workspace, settings))
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")


async def repair_story(story: Path, workspace: Path, settings: Settings) -> bool:
    """Fold every icon in scope into ``story`` on disk; True when it changed."""

    files = LocalWorkspaceFiles()
    service = ReadIconService(files, settings)
    current = await files.read_text(story) if await files.exists(story) else ""
    repaired = await service.read(workspace, story, current)
    if repaired == current:
        return False
    await files.write_text(story, repaired)
    _LOGGER.info("Repaired icons in %s", story)
    return True


async def watch_workspace(
    workspace: Path,
    settings: Settings,
    *,
    stop_event: asyncio.Event | None = None,
    observer_factory: ObserverFactory | None = None,
) -> None:
    """Run the live icon watcher until ``stop_event`` is set or the task is cancelled."""

    bus = EventBus()
    bus.subscribe(IconChangeApplied, _log_applied)
    bus.subscribe(IconChangeFailed, _log_failed)
    controller = IconWatcherController(
        workspace,
        LocalWorkspaceFiles(),
        settings,
        event_bus=bus,
        observer_factory=observer_factory,
    )
    controller.start(asyncio.get_running_loop())
    try:
        await (stop_event or asyncio.Event()).wait()
    finally:
        await controller.stop()
        bus.clear()


def _log_applied(event: IconChangeApplied) -> None:
    _LOGGER.info(
        "Applied %s of %s/%s to %s", event.kind, event.icon_type, event.icon_name, event.document_path
    )


def _log_failed(event: IconChangeFailed) -> None:
    _LOGGER.error("Could not update %s with %s: %s", event.document_path, event.icon_name, event.error)


def _resolve_workspace(story: Path, workspace: str | None) -> Path:
    if workspace:
        return Path(workspace).expanduser().resolve()
    cwd = Path.cwd().resolve()
    return cwd if story.is_relative_to(cwd) else story.parent


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="storysync",
        add_help=True,
        description="Keep domain story files in sync with their icon directories.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.storysync/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    repair = commands.add_parser("repair", help="Merge every icon in scope into a story file.")
    repair.add_argument("story", metavar="STORY", help="Story file to repair.")
    repair.add_argument(
        "--workspace",
        metavar="DIR",
        help="Workspace root to scan for icons (default: current directory).",
    )

    watch = commands.add_parser("watch", help="Patch story files as icon files change.")
    watch.add_argument("workspace", metavar="WORKSPACE", help="Workspace root to watch.")

    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if target is str or target is Any:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is list:
        return [item.strip() for item in normalized.split(",") if item.strip()]
    if target is type(None) or normalized.lower() in {"none", "null"}:
        return None
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin is list:
        return list
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0] if isinstance(args[0], type) else str


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": payload, "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("STORYSYNC_"))
