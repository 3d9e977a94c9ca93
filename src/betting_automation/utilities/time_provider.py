"""Time/clock abstractions for deterministic time handling.

The engine and adapters read wall-clock time (session stamps, uptime) and a
monotonic clock (execution durations) through a ``TimeProvider`` so tests can
swap in ``FakeClock`` and advance time explicitly.
"""

from __future__ import annotations

import time as time_module
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

from betting_automation.utilities.datetime_helpers import normalize_to_utc, utc_now


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for retrieving current time values."""

    def now_utc(self) -> datetime:
        """Return the current UTC time as a timezone-aware datetime."""

    def time(self) -> float:
        """Return the current Unix timestamp (seconds since epoch)."""

    def monotonic(self) -> float:
        """Return a monotonic clock value for measuring durations."""


class SystemClock:
    """Clock backed by the system time sources."""

    def now_utc(self) -> datetime:
        return utc_now()

    def time(self) -> float:
        return time_module.time()

    def monotonic(self) -> float:
        return time_module.monotonic()


class FakeClock:
    """Deterministic clock for tests that can be advanced or reset."""

    def __init__(
        self,
        start_datetime: datetime | None = None,
        *,
        start_monotonic: float = 0.0,
    ) -> None:
        self._now = normalize_to_utc(start_datetime) if start_datetime else utc_now()
        self._monotonic = float(start_monotonic)

    def now_utc(self) -> datetime:
        return self._now

    def time(self) -> float:
        return self._now.timestamp()

    def monotonic(self) -> float:
        return self._monotonic

    def set_datetime(self, value: datetime) -> None:
        self._now = normalize_to_utc(value)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("advance() requires a non-negative duration")
        delta = float(seconds)
        self._now = self._now + timedelta(seconds=delta)
        self._monotonic += delta


_default_clock = SystemClock()
_clock: TimeProvider = _default_clock


def get_clock() -> TimeProvider:
    """Return the current active clock implementation."""

    return _clock


def set_clock(clock: TimeProvider) -> None:
    """Override the active clock (useful for deterministic tests)."""

    global _clock
    _clock = clock


def reset_clock() -> None:
    """Reset the active clock to the system clock."""

    global _clock
    _clock = _default_clock


__all__ = [
    "TimeProvider",
    "SystemClock",
    "FakeClock",
    "get_clock",
    "set_clock",
    "reset_clock",
]
