"""Settings dataclass and JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Literal, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "SCOPE_POLICY_CHOICES",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".storysync"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "STORYSYNC_ICON_BASE_PATH": "icon_base_path",
    "STORYSYNC_STORY_EXTENSION": "story_extension",
    "STORYSYNC_SCOPE_POLICY": "scope_policy",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "STORYSYNC_DEBUG_LOGGING": "debug_logging",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
SCOPE_POLICY_CHOICES: tuple[str, ...] = ("nearest", "all")
ScopePolicy = Literal["nearest", "all"]


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between runs.

    ``icon_base_path`` is relative to the directory that owns an icon scope;
    icons live in ``<base>/<icon_base_path>/<actor_dir|work_object_dir>/``.
    ``scope_policy`` decides how overlapping icon scopes are resolved:
    ``"nearest"`` lets the nearest ancestor scope win per icon name, ``"all"``
    patches every story below any matching scope (last write wins).
    """

    icon_base_path: str = ".egon/icons"
    actor_dir: str = "actors"
    work_object_dir: str = "work-objects"
    icon_extension: str = "svg"
    story_extension: str = "egn"
    scope_policy: ScopePolicy = "nearest"
    debug_logging: bool = False
    log_dir: str | None = None
    quiet_loggers: list[str] = field(default_factory=lambda: ["asyncio", "watchdog"])

    @property
    def icon_glob(self) -> str:
        """Glob (relative to a workspace root) matching every icon file."""

        return f"**/{self.icon_base_path}/**/*.{self.icon_extension}"

    @property
    def story_glob(self) -> str:
        """Glob (relative to a workspace root) matching every story file."""

        return f"**/*.{self.story_extension}"


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            LOGGER.debug("Settings loaded from %s: %s", self._path, sorted(data))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        settings = self._apply_env_overrides(settings)
        return _normalize_scope_policy(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {item.name for item in fields(Settings)}
        filtered = {
            key: value
            for key, value in overrides.items()
            if key in allowed and value is not None
        }
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _normalize_scope_policy(settings: Settings) -> Settings:
    policy = (settings.scope_policy or "").strip().lower()
    if policy in SCOPE_POLICY_CHOICES:
        if policy != settings.scope_policy:
            settings = replace(settings, scope_policy=policy)
        return settings
    LOGGER.warning(
        "Unknown scope_policy %r; falling back to 'nearest'", settings.scope_policy
    )
    return replace(settings, scope_policy="nearest")
