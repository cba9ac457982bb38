"""Story document value types with parse/serialize helpers.

A story file is JSON shaped as::

    {
      "domain": {"name": "...", "actors": {name: svg}, "workObjects": {name: svg}},
      "dst": [ ...diagram elements... ]
    }

``dst`` is carried through untouched. Blank input is not an error: it parses
to the canonical empty story so a freshly created file can be opened and
patched like any other.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from json import JSONDecodeError
from typing import Any, Dict, Iterable, List, Sequence

import jsonschema
from jsonschema.exceptions import best_match

from ..errors import MalformedDocument
from .icons import IconType

__all__ = [
    "DomainConfiguration",
    "StoryDocument",
    "STORY_SCHEMA",
    "empty_story",
    "parse_or_empty",
    "serialize",
]

_ICON_MAP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}

STORY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["domain", "dst"],
    "properties": {
        "domain": {
            "type": "object",
            "required": ["actors", "workObjects"],
            "properties": {
                "name": {"type": "string"},
                "actors": _ICON_MAP_SCHEMA,
                "workObjects": _ICON_MAP_SCHEMA,
            },
        },
        "dst": {"type": "array"},
    },
}

_VALIDATOR = jsonschema.Draft202012Validator(STORY_SCHEMA)


@dataclass(slots=True)
class DomainConfiguration:
    """Domain name plus the two icon maps (icon name -> SVG text)."""

    name: str = ""
    actors: Dict[str, str] = field(default_factory=dict)
    work_objects: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def icons(self, icon_type: IconType) -> Dict[str, str]:
        """Return the mutable map holding icons of ``icon_type``."""

        if icon_type is IconType.ACTOR:
            return self.actors
        return self.work_objects


@dataclass(slots=True)
class StoryDocument:
    """A complete story: domain configuration and opaque diagram elements.

    ``extra`` holds top-level keys this package does not model so that a
    parse/serialize cycle never drops them.
    """

    domain: DomainConfiguration = field(default_factory=DomainConfiguration)
    dst: List[Any] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


def empty_story() -> StoryDocument:
    return StoryDocument()


def parse_or_empty(text: str | None) -> StoryDocument:
    """Parse story text, yielding the empty story for blank or absent input.

    Raises:
        MalformedDocument: The text is not JSON, does not have the story shape,
            or names the same actor or work object twice.
    """

    if text is None or not text.strip():
        return empty_story()

    try:
        payload = json.loads(text, object_pairs_hook=_collect_pairs)
    except JSONDecodeError as exc:
        raise MalformedDocument(exc.msg, line=exc.lineno) from exc

    issue = best_match(_VALIDATOR.iter_errors(payload))
    if issue is not None:
        path = _format_schema_path(issue.absolute_path)
        message = f"{path}: {issue.message}" if path else issue.message
        raise MalformedDocument(message) from None
    _reject_duplicate_icons(payload["domain"])

    domain_payload = dict(payload["domain"])
    domain = DomainConfiguration(
        name=domain_payload.get("name", ""),
        actors=dict(domain_payload["actors"]),
        work_objects=dict(domain_payload["workObjects"]),
        extra={
            key: value
            for key, value in domain_payload.items()
            if key not in ("name", "actors", "workObjects")
        },
    )
    extra = {key: value for key, value in payload.items() if key not in ("domain", "dst")}
    return StoryDocument(domain=domain, dst=list(payload["dst"]), extra=extra)


def serialize(doc: StoryDocument) -> str:
    """Render ``doc`` as deterministic, 2-space indented JSON."""

    payload: Dict[str, Any] = {
        "domain": {
            "name": doc.domain.name,
            "actors": doc.domain.actors,
            "workObjects": doc.domain.work_objects,
        },
        "dst": doc.dst,
    }
    for key, value in doc.domain.extra.items():
        payload["domain"].setdefault(key, value)
    for key, value in doc.extra.items():
        payload.setdefault(key, value)
    return json.dumps(payload, indent=2, ensure_ascii=False)


class _ParsedObject(dict):
    """JSON object that remembers which keys appeared more than once."""

    __slots__ = ("duplicate_keys",)

    def __init__(self) -> None:
        super().__init__()
        self.duplicate_keys: list[str] = []


def _collect_pairs(pairs: Iterable[tuple[str, Any]]) -> _ParsedObject:
    result = _ParsedObject()
    for key, value in pairs:
        if key in result:
            result.duplicate_keys.append(key)
        result[key] = value
    return result


def _reject_duplicate_icons(domain: Dict[str, Any]) -> None:
    # dst and unknown keys stay opaque; only the icon maps are keyed by name
    for map_key in ("actors", "workObjects"):
        icons = domain[map_key]
        duplicates = getattr(icons, "duplicate_keys", ())
        if duplicates:
            raise MalformedDocument(
                f"Duplicate key '{duplicates[0]}' found in domain.{map_key}."
            )


def _format_schema_path(path: Sequence[Any]) -> str:
    components: list[str] = []
    for segment in path:
        if isinstance(segment, int) and components:
            components[-1] = f"{components[-1]}[{segment}]"
        else:
            components.append(str(segment))
    return ".".join(components)
