from __future__ import annotations

from betting_automation.core.events import (
    BetPlaced,
    EventChannel,
    ProviderError,
    SessionEnd,
    SessionStart,
)


def test_event_kinds_are_stable() -> None:
    assert SessionStart(provider="p").kind == "session_start"
    assert SessionEnd(provider="p").kind == "session_end"
    assert BetPlaced(provider="p").kind == "bet_placed"
    assert ProviderError(provider="p", error="x").kind == "error"


def test_channel_delivers_to_every_listener_in_order() -> None:
    channel: EventChannel[str] = EventChannel("test")
    seen: list[str] = []
    channel.subscribe(lambda e: seen.append(f"a:{e}"))
    channel.subscribe(lambda e: seen.append(f"b:{e}"))

    channel.emit("x")

    assert seen == ["a:x", "b:x"]


def test_failing_listener_does_not_block_others() -> None:
    channel: EventChannel[str] = EventChannel("test")
    seen: list[str] = []

    def broken(_: str) -> None:
        raise RuntimeError("listener bug")

    channel.subscribe(broken)
    channel.subscribe(seen.append)

    channel.emit("event")

    assert seen == ["event"]


def test_subscribe_is_idempotent_and_unsubscribe_removes() -> None:
    channel: EventChannel[int] = EventChannel("test")
    seen: list[int] = []
    channel.subscribe(seen.append)
    channel.subscribe(seen.append)
    assert channel.listener_count == 1

    channel.unsubscribe(seen.append)
    channel.unsubscribe(seen.append)
    channel.emit(1)

    assert seen == []
    assert channel.listener_count == 0
