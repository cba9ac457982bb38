"""Pure functions that fold icons into a story document's icon maps."""

from __future__ import annotations

import logging
from typing import Iterable

from .document_model import StoryDocument, parse_or_empty, serialize
from .icons import Icon, IconChange, IconName, IconType

__all__ = [
    "upsert",
    "delete",
    "apply_change",
    "sync_from_set",
    "apply_icon_change",
]

LOGGER = logging.getLogger(__name__)


def upsert(doc: StoryDocument, icon: Icon) -> None:
    """Store ``icon.svg`` under its name, replacing any existing entry."""

    doc.domain.icons(icon.type)[icon.name.value] = icon.svg


def delete(doc: StoryDocument, icon_type: IconType, name: IconName) -> None:
    doc.domain.icons(icon_type).pop(name.value, None)


def apply_change(doc: StoryDocument, change: IconChange) -> None:
    """Apply one icon file event to ``doc`` in place.

    A create/update without SVG content is dropped so a half-written icon file
    never replaces a good entry with an empty one.
    """

    if change.kind == "delete":
        delete(doc, change.type, change.name)
        return
    if not change.svg or not change.svg.strip():
        LOGGER.debug("Dropping %s for icon %s without svg", change.kind, change.name)
        return
    upsert(doc, Icon(type=change.type, name=change.name, svg=change.svg))


def sync_from_set(current_text: str | None, icons: Iterable[Icon]) -> str:
    """Union ``icons`` into the story text and return the serialized result.

    Later icons win over earlier ones with the same name. Icons missing from
    ``icons`` are kept: the set only reflects one scan of one scope.
    """

    doc = parse_or_empty(current_text)
    for icon in icons:
        upsert(doc, icon)
    return serialize(doc)


def apply_icon_change(current_text: str | None, change: IconChange) -> str:
    doc = parse_or_empty(current_text)
    apply_change(doc, change)
    return serialize(doc)
