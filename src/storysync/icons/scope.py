"""Icon scope arithmetic.

An icon scope is owned by its base directory: the directory holding the
``.egon/icons`` subtree. A story sees every scope whose base directory is its
own directory or an ancestor of it.
"""

from __future__ import annotations

from pathlib import Path

from ..services.settings import Settings
from ..story.icons import IconPathLayout, IconType

__all__ = [
    "is_within",
    "is_story_affected",
    "layout_from_settings",
    "scope_chain",
    "icon_file_in_scope",
]


def layout_from_settings(settings: Settings) -> IconPathLayout:
    return IconPathLayout(
        base_path=settings.icon_base_path,
        actor_dir=settings.actor_dir,
        work_object_dir=settings.work_object_dir,
    )


def is_within(path: Path, ancestor: Path) -> bool:
    """True when ``path`` is ``ancestor`` or lies below it."""

    return path.is_relative_to(ancestor)


def is_story_affected(story_path: Path, base_dir: Path) -> bool:
    """True when the story's directory is ``base_dir`` or one of its descendants."""

    return is_within(story_path.parent, base_dir)


def scope_chain(start: Path, stop: Path) -> list[Path]:
    """Directories from ``start`` up to and including ``stop``, nearest first.

    Returns an empty list when ``start`` is not within ``stop``.
    """

    if not is_within(start, stop):
        return []
    chain = [start]
    current = start
    while current != stop:
        current = current.parent
        chain.append(current)
    return chain


def icon_file_in_scope(
    base_dir: Path, layout: IconPathLayout, icon_type: IconType, file_name: str
) -> Path:
    """Path the icon ``file_name`` of ``icon_type`` would have in ``base_dir``'s scope."""

    category = layout.actor_path if icon_type is IconType.ACTOR else layout.work_object_path
    return base_dir.joinpath(*category.split("/"), file_name)
