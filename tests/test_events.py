"""Unit tests for :mod:`storysync.events`."""

from __future__ import annotations

import gc
from dataclasses import dataclass

import pytest

from storysync.events import ContentUpdated, Event, EventBus, IconChangeApplied


@dataclass(slots=True)
class SampleEvent(Event):
    """A sample event for testing."""

    message: str
    value: int = 0


class TestEventBusSubscription:
    """Tests for EventBus subscription functionality."""

    def test_same_handler_subscribed_twice_runs_twice(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        bus.subscribe(SampleEvent, received.append)
        bus.subscribe(SampleEvent, received.append)
        bus.publish(SampleEvent(message="twice"))

        assert [event.message for event in received] == ["twice", "twice"]

    def test_publish_without_handlers_is_a_no_op(self) -> None:
        bus: EventBus[Event] = EventBus()

        bus.publish(SampleEvent(message="nobody"))

    def test_clear_removes_everything(self) -> None:
        bus: EventBus[Event] = EventBus()
        samples: list[Event] = []
        updates: list[Event] = []
        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(ContentUpdated, updates.append)

        bus.clear()
        bus.publish(SampleEvent(message="gone"))
        bus.publish(ContentUpdated(document_id="/a.egn", origin="local", text="{}"))

        assert samples == []
        assert updates == []


class TestEventBusPublishing:
    """Tests for event delivery."""

    def test_publish_only_reaches_matching_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        samples: list[Event] = []
        applied: list[Event] = []
        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(IconChangeApplied, applied.append)

        bus.publish(SampleEvent(message="hi"))

        assert len(samples) == 1
        assert applied == []

    def test_handler_exception_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        def failing(event: SampleEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, failing)
        bus.subscribe(SampleEvent, received.append)

        with caplog.at_level("ERROR"):
            bus.publish(SampleEvent(message="x"))

        assert len(received) == 1
        assert "failing" in caplog.text

    def test_bound_method_is_held_weakly(self) -> None:
        bus: EventBus[Event] = EventBus()

        class Subscriber:
            def __init__(self) -> None:
                self.count = 0

            def on_event(self, event: SampleEvent) -> None:
                self.count += 1

        subscriber = Subscriber()
        bus.subscribe(SampleEvent, subscriber.on_event)
        bus.publish(SampleEvent(message="a"))
        assert subscriber.count == 1

        del subscriber
        gc.collect()
        bus.publish(SampleEvent(message="b"))

        assert bus._handlers[SampleEvent] == []


class TestContentUpdated:
    def test_type_name(self) -> None:
        event = ContentUpdated(document_id="/a.egn", origin="remote", text="{}")

        assert event.type == "ContentUpdated"
        assert event.session_id is None
