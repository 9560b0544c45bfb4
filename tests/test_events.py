"""Tests for the event bus."""

from swipe_review.services.events import EventBus


def test_failing_listener_does_not_block_others() -> None:
    bus: EventBus[str] = EventBus()
    received: list[str] = []

    def broken(event: str) -> None:
        raise RuntimeError(event)

    bus.subscribe(broken)
    unsubscribe = bus.subscribe(received.append)

    bus.publish("first")
    unsubscribe()
    bus.publish("second")

    assert received == ["first"]
