"""Tests for the in-process StatusBus."""

import pytest

from streamcircle.api.pubsub import RoomStatusEvent, StatusBus


def _make_event(slug: str = "jam-night", is_live: bool = True) -> RoomStatusEvent:
    return RoomStatusEvent(room_id="room-1", slug=slug, is_live=is_live)


def test_publish_no_subscribers():
    """Publishing with no subscribers should not raise."""
    bus = StatusBus()
    bus.publish(_make_event())  # no error


def test_publish_calls_every_handler():
    bus = StatusBus()
    seen_a: list[RoomStatusEvent] = []
    seen_b: list[RoomStatusEvent] = []
    bus.subscribe(seen_a.append)
    bus.subscribe(seen_b.append)

    event = _make_event()
    bus.publish(event)

    assert seen_a == [event]
    assert seen_b == [event]


def test_handlers_run_in_registration_order():
    bus = StatusBus()
    calls: list[str] = []
    bus.subscribe(lambda e: calls.append("first"))
    bus.subscribe(lambda e: calls.append("second"))

    bus.publish(_make_event())

    assert calls == ["first", "second"]


def test_events_delivered_in_publish_order():
    bus = StatusBus()
    seen: list[bool] = []
    bus.subscribe(lambda e: seen.append(e.is_live))

    bus.publish(_make_event(is_live=True))
    bus.publish(_make_event(is_live=False))
    bus.publish(_make_event(is_live=True))

    assert seen == [True, False, True]


def test_late_subscriber_misses_earlier_events():
    bus = StatusBus()
    bus.publish(_make_event())
    seen: list[RoomStatusEvent] = []
    bus.subscribe(seen.append)
    assert seen == []


def test_handler_errors_propagate_to_publisher():
    bus = StatusBus()

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    with pytest.raises(RuntimeError):
        bus.publish(_make_event())


def test_event_is_immutable():
    event = _make_event()
    with pytest.raises(AttributeError):
        event.is_live = False  # type: ignore[misc]
