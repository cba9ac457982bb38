"""Story document model, icon value types and the icon reconciler."""

from .document_model import (
    DomainConfiguration,
    StoryDocument,
    empty_story,
    parse_or_empty,
    serialize,
)
from .icons import (
    DEFAULT_LAYOUT,
    Icon,
    IconChange,
    IconChangeKind,
    IconName,
    IconPathLayout,
    IconPathMetadata,
    IconType,
    try_parse_icon_path,
)
from .reconciler import apply_change, apply_icon_change, delete, sync_from_set, upsert

__all__ = [
    "DomainConfiguration",
    "StoryDocument",
    "empty_story",
    "parse_or_empty",
    "serialize",
    "DEFAULT_LAYOUT",
    "Icon",
    "IconChange",
    "IconChangeKind",
    "IconName",
    "IconPathLayout",
    "IconPathMetadata",
    "IconType",
    "try_parse_icon_path",
    "apply_change",
    "apply_icon_change",
    "delete",
    "sync_from_set",
    "upsert",
]
