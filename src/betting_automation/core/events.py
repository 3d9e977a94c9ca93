"""
Event variants and the observer channel that carries them.

Events are organised by producer:
- Provider events: emitted by backend adapters (session_start, session_end,
  bet_placed, bet_result, error)
- Engine events: emitted by the execution engine around start/stop, bet
  completion and provider switching
- Notifications: the manager's public vocabulary, one flat shape
  (name + payload + timestamp) for external subscribers

Usage:
    channel: EventChannel[ProviderEvent] = EventChannel("sandbox")
    channel.subscribe(lambda event: print(event.kind))
    channel.emit(SessionStart(provider="SandboxProvider"))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from betting_automation.utilities.datetime_helpers import utc_now
from betting_automation.utilities.logging_patterns import get_logger

if TYPE_CHECKING:
    from betting_automation.core.types import (
        AutomationMetrics,
        BetRequest,
        BetResult,
        BettingSession,
    )

logger = get_logger(__name__, component="events")

E = TypeVar("E")
Listener = Callable[[E], None]


# ==============================================================================
# Provider Events
# ==============================================================================


@dataclass(frozen=True)
class ProviderEvent:
    kind: ClassVar[str] = "provider_event"

    provider: str
    timestamp: datetime = field(default_factory=utc_now, kw_only=True)


@dataclass(frozen=True)
class SessionStart(ProviderEvent):
    kind: ClassVar[str] = "session_start"

    site: str | None = None


@dataclass(frozen=True)
class SessionEnd(ProviderEvent):
    """Provider connection closed; carries the adapter's final counters."""

    kind: ClassVar[str] = "session_end"

    metrics: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BetPlaced(ProviderEvent):
    kind: ClassVar[str] = "bet_placed"

    request: BetRequest | None = None


@dataclass(frozen=True)
class BetResultEvent(ProviderEvent):
    kind: ClassVar[str] = "bet_result"

    result: BetResult | None = None


@dataclass(frozen=True)
class ProviderError(ProviderEvent):
    kind: ClassVar[str] = "error"

    error: str = ""
    request: BetRequest | None = None


# ==============================================================================
# Engine Events
# ==============================================================================


@dataclass(frozen=True)
class EngineEvent:
    kind: ClassVar[str] = "engine_event"

    timestamp: datetime = field(default_factory=utc_now, kw_only=True)


@dataclass(frozen=True)
class EngineStarted(EngineEvent):
    kind: ClassVar[str] = "started"

    session: BettingSession | None = None


@dataclass(frozen=True)
class EngineStopped(EngineEvent):
    kind: ClassVar[str] = "stopped"

    session: BettingSession | None = None
    metrics: AutomationMetrics | None = None


@dataclass(frozen=True)
class BetCompleted(EngineEvent):
    kind: ClassVar[str] = "bet_completed"

    result: BetResult | None = None


@dataclass(frozen=True)
class BetFailed(EngineEvent):
    kind: ClassVar[str] = "bet_failed"

    result: BetResult | None = None


@dataclass(frozen=True)
class ProviderConnected(EngineEvent):
    kind: ClassVar[str] = "provider_connected"

    provider: str = ""


@dataclass(frozen=True)
class ProviderSwitched(EngineEvent):
    kind: ClassVar[str] = "provider_switched"

    from_provider: str = ""
    to_provider: str = ""


@dataclass(frozen=True)
class ProviderEventForwarded(EngineEvent):
    """A provider event re-published by the engine under a normalised name."""

    kind: ClassVar[str] = "provider_event"

    event_type: str = ""
    provider: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigUpdated(EngineEvent):
    kind: ClassVar[str] = "config_updated"

    config: dict[str, Any] = field(default_factory=dict)


# ==============================================================================
# Public Notifications
# ==============================================================================


@dataclass(frozen=True)
class Notification:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


class EventChannel(Generic[E]):
    """Synchronous fan-out to subscribed listeners.

    A listener that raises is logged and skipped; the emitter never sees the
    exception.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener[E]] = []

    def subscribe(self, listener: Listener[E]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener[E]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Event listener failed",
                    channel=self.name,
                    event_kind=getattr(event, "kind", type(event).__name__),
                )


__all__ = [
    "ProviderEvent",
    "SessionStart",
    "SessionEnd",
    "BetPlaced",
    "BetResultEvent",
    "ProviderError",
    "EngineEvent",
    "EngineStarted",
    "EngineStopped",
    "BetCompleted",
    "BetFailed",
    "ProviderConnected",
    "ProviderSwitched",
    "ProviderEventForwarded",
    "ConfigUpdated",
    "Notification",
    "EventChannel",
]
