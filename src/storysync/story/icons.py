"""Icon value types and the icon directory naming convention."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

__all__ = [
    "IconType",
    "IconName",
    "Icon",
    "IconChange",
    "IconChangeKind",
    "IconPathMetadata",
    "IconPathLayout",
    "DEFAULT_LAYOUT",
    "try_parse_icon_path",
]

IconChangeKind = Literal["create", "update", "delete"]
_SEPARATORS = re.compile(r"[\\/]")


class IconType(Enum):
    """Icon category; the value is the key of the matching map in a story."""

    ACTOR = "actors"
    WORK_OBJECT = "workObjects"


@dataclass(slots=True, frozen=True)
class IconName:
    """A non-empty, trimmed icon name.

    Construct through :meth:`from_string` or :meth:`from_file_name`; both
    return ``None`` instead of raising when nothing usable remains.
    """

    value: str

    @classmethod
    def from_string(cls, name: str) -> Optional["IconName"]:
        trimmed = (name or "").strip()
        if not trimmed:
            return None
        return cls(trimmed)

    @classmethod
    def from_file_name(cls, file_name: str) -> Optional["IconName"]:
        """Derive a name from the last path segment, dropping every extension."""

        base = _SEPARATORS.split(file_name or "")[-1]
        return cls.from_string(base.split(".")[0])

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class Icon:
    type: IconType
    name: IconName
    svg: str


@dataclass(slots=True, frozen=True)
class IconChange:
    """A single icon file event; ``svg`` is ignored for deletions."""

    type: IconType
    name: IconName
    kind: IconChangeKind
    svg: str | None = None


@dataclass(slots=True, frozen=True)
class IconPathMetadata:
    type: IconType
    name: IconName


@dataclass(slots=True, frozen=True)
class IconPathLayout:
    """Where icons live relative to the directory that owns an icon scope."""

    base_path: str = ".egon/icons"
    actor_dir: str = "actors"
    work_object_dir: str = "work-objects"

    @property
    def actor_path(self) -> str:
        return f"{self.base_path.strip('/')}/{self.actor_dir}"

    @property
    def work_object_path(self) -> str:
        return f"{self.base_path.strip('/')}/{self.work_object_dir}"

    def base_directory(self, icon_path: str) -> str | None:
        """Return the directory containing the icon subtree, or ``None``.

        The last occurrence of ``base_path`` wins, so an icon inside nested
        scopes belongs to the innermost one.
        """

        normalized = _normalize(icon_path)
        base = self.base_path.strip("/")
        index = normalized.rfind(f"/{base}/")
        if index >= 0:
            return normalized[:index] or "/"
        if normalized.startswith(f"{base}/"):
            return "."
        return None


DEFAULT_LAYOUT = IconPathLayout()


def try_parse_icon_path(
    path: str, layout: IconPathLayout = DEFAULT_LAYOUT
) -> IconPathMetadata | None:
    """Parse ``.../<base>/actors/<Name>.svg`` style paths.

    Returns ``None`` for paths outside either category directory or whose file
    name yields no icon name.
    """

    normalized = _normalize(path)
    anchored = f"/{normalized}"
    if f"/{layout.actor_path}/" in anchored:
        icon_type = IconType.ACTOR
    elif f"/{layout.work_object_path}/" in anchored:
        icon_type = IconType.WORK_OBJECT
    else:
        return None

    name = IconName.from_file_name(normalized)
    if name is None:
        return None
    return IconPathMetadata(type=icon_type, name=name)


def _normalize(path: str) -> str:
    return str(path).replace("\\", "/")
