"""
Tests for EventBus delivery.
"""
import logging

from passwordlock.events import EventBus
from passwordlock.models import AuthEvent, AuthEventType


def event(kind=AuthEventType.SIGNED_OUT):
    return AuthEvent(type=kind)


def test_events_delivered_in_order():
    bus = EventBus()
    seen = []
    bus.on_event(lambda e: seen.append(("a", e.type)))
    bus.on_event(lambda e: seen.append(("b", e.type)))
    bus.emit(event(AuthEventType.SIGNED_IN))
    bus.emit(event(AuthEventType.SIGNED_OUT))
    assert seen == [
        ("a", AuthEventType.SIGNED_IN),
        ("b", AuthEventType.SIGNED_IN),
        ("a", AuthEventType.SIGNED_OUT),
        ("b", AuthEventType.SIGNED_OUT),
    ]


def test_disposer_unsubscribes_once():
    bus = EventBus()
    seen = []
    dispose = bus.on_event(seen.append)
    assert len(bus) == 1
    dispose()
    dispose()
    bus.emit(event())
    assert seen == []
    assert len(bus) == 0


def test_failing_handler_does_not_stop_delivery(caplog):
    bus = EventBus()
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    bus.on_event(broken)
    bus.on_event(seen.append)
    with caplog.at_level(logging.ERROR, logger="passwordlock.auth"):
        bus.emit(event())
    assert len(seen) == 1
    assert "boom" in caplog.text


def test_handler_registered_during_emit_waits_for_next_event():
    bus = EventBus()
    late = []

    def register(_):
        bus.on_event(late.append)

    bus.on_event(register)
    bus.emit(event())
    assert late == []
