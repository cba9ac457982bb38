"""Tests for :mod:`storysync.story.reconciler`."""

from __future__ import annotations

import json

import pytest

from storysync.errors import MalformedDocument
from storysync.story.document_model import empty_story, parse_or_empty, serialize
from storysync.story.icons import Icon, IconChange, IconName, IconType
from storysync.story.reconciler import (
    apply_change,
    apply_icon_change,
    delete,
    sync_from_set,
    upsert,
)


def _name(value: str) -> IconName:
    name = IconName.from_string(value)
    assert name is not None
    return name


def _icon(icon_type: IconType, name: str, svg: str) -> Icon:
    return Icon(type=icon_type, name=_name(name), svg=svg)


def test_upsert_overwrites_existing_entry() -> None:
    doc = empty_story()
    upsert(doc, _icon(IconType.ACTOR, "Cat", "<svg>old</svg>"))
    upsert(doc, _icon(IconType.ACTOR, "Cat", "<svg>new</svg>"))

    assert doc.domain.actors == {"Cat": "<svg>new</svg>"}
    assert doc.domain.work_objects == {}


def test_delete_missing_icon_is_noop() -> None:
    doc = empty_story()
    upsert(doc, _icon(IconType.WORK_OBJECT, "Order", "<svg/>"))

    delete(doc, IconType.WORK_OBJECT, _name("Invoice"))

    assert doc.domain.work_objects == {"Order": "<svg/>"}


@pytest.mark.parametrize("svg", [None, "", "  \n"])
def test_create_without_svg_leaves_maps_unchanged(svg: str | None) -> None:
    doc = empty_story()
    upsert(doc, _icon(IconType.ACTOR, "Cat", "<svg>kept</svg>"))

    apply_change(doc, IconChange(type=IconType.ACTOR, name=_name("Cat"), kind="update", svg=svg))
    apply_change(doc, IconChange(type=IconType.ACTOR, name=_name("Dog"), kind="create", svg=svg))

    assert doc.domain.actors == {"Cat": "<svg>kept</svg>"}


def test_apply_change_delete_removes_entry() -> None:
    doc = empty_story()
    upsert(doc, _icon(IconType.ACTOR, "Cat", "<svg/>"))

    apply_change(doc, IconChange(type=IconType.ACTOR, name=_name("Cat"), kind="delete"))

    assert doc.domain.actors == {}


def test_sync_from_set_on_blank_text_builds_story() -> None:
    text = sync_from_set(
        "",
        [
            _icon(IconType.ACTOR, "Cat", "<svg>actor</svg>"),
            _icon(IconType.WORK_OBJECT, "Cat", "<svg>object</svg>"),
        ],
    )

    domain = json.loads(text)["domain"]
    assert domain["actors"] == {"Cat": "<svg>actor</svg>"}
    assert domain["workObjects"] == {"Cat": "<svg>object</svg>"}


def test_sync_from_set_later_icons_win_and_nothing_is_removed() -> None:
    doc = empty_story()
    upsert(doc, _icon(IconType.ACTOR, "Legacy", "<svg>legacy</svg>"))
    doc.dst.append({"id": "actor_1"})

    text = sync_from_set(
        serialize(doc),
        [
            _icon(IconType.ACTOR, "Cat", "<svg>first</svg>"),
            _icon(IconType.ACTOR, "Cat", "<svg>second</svg>"),
        ],
    )

    result = parse_or_empty(text)
    assert result.domain.actors == {"Legacy": "<svg>legacy</svg>", "Cat": "<svg>second</svg>"}
    assert result.dst == [{"id": "actor_1"}]


def test_apply_icon_change_returns_patched_text() -> None:
    text = apply_icon_change(
        None,
        IconChange(type=IconType.WORK_OBJECT, name=_name("Order"), kind="create", svg="<svg/>"),
    )

    assert parse_or_empty(text).domain.work_objects == {"Order": "<svg/>"}


def test_apply_icon_change_rejects_malformed_text() -> None:
    with pytest.raises(MalformedDocument):
        apply_icon_change(
            "not json",
            IconChange(type=IconType.ACTOR, name=_name("Cat"), kind="create", svg="<svg/>"),
        )
