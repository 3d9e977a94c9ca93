"""
Backend adapter contract.

Every backend implements ``is_available``, ``_do_connect``,
``_do_disconnect`` and ``_do_place_bet``; this base class wraps them with the
shared bookkeeping: connection flag, per-adapter counters, event emission and
fault normalisation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, ClassVar

from betting_automation.core.events import (
    BetPlaced,
    BetResultEvent,
    EventChannel,
    ProviderError,
    ProviderEvent,
    SessionEnd,
    SessionStart,
)
from betting_automation.core.types import BetRequest, BetResult, Credentials, ProviderStatus
from betting_automation.errors import NotConnectedError, ValidationError
from betting_automation.utilities.logging_patterns import get_logger
from betting_automation.utilities.time_provider import TimeProvider, get_clock

logger = get_logger(__name__, component="provider")

ProviderListener = Callable[[ProviderEvent], None]


class BaseBettingProvider(ABC):
    """Shared behaviour of every execution backend."""

    name: ClassVar[str] = "BaseProvider"
    priority: ClassVar[int] = 100
    kind: ClassVar[str] = "other"

    def __init__(self, clock: TimeProvider | None = None) -> None:
        self._clock = clock or get_clock()
        self.is_connected = False
        self.last_error: str | None = None
        self.credentials: Credentials | None = None
        self.events: EventChannel[ProviderEvent] = EventChannel(self.name)
        self._total_bets = 0
        self._successful_bets = 0
        self._total_response_time = 0.0
        self._last_bet_time: float | None = None

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def is_available(self) -> bool:
        """Environment capability probe. Must not raise."""

    @abstractmethod
    async def _do_connect(self, credentials: Credentials) -> None: ...

    @abstractmethod
    async def _do_disconnect(self) -> None: ...

    @abstractmethod
    async def _do_place_bet(self, request: BetRequest) -> BetResult: ...

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    async def connect(self, credentials: Credentials) -> None:
        self.credentials = credentials
        try:
            await self._do_connect(credentials)
        except Exception as exc:
            self.last_error = str(exc) or type(exc).__name__
            self.is_connected = False
            logger.warning(
                "Provider connection failed",
                provider=self.name,
                error=self.last_error,
            )
            self._emit(ProviderError(provider=self.name, error=self.last_error))
            raise

        self.is_connected = True
        self.last_error = None
        logger.info("Provider connected", provider=self.name, site_url=credentials.site_url)
        self._emit(SessionStart(provider=self.name, site=credentials.site_url))

    async def disconnect(self) -> None:
        """Tear down the backend. Safe to call at any time, repeatedly."""
        try:
            await self._do_disconnect()
        except Exception as exc:
            self.last_error = str(exc) or "Disconnect failed"
            raise
        finally:
            self.is_connected = False

        logger.info("Provider disconnected", provider=self.name)
        self._emit(SessionEnd(provider=self.name, metrics=self.get_metrics()))

    async def place_bet(self, request: BetRequest) -> BetResult:
        """Execute one bet.

        Raises:
            NotConnectedError: the backend has no live session
            ValidationError: the request shape is invalid (nothing was sent)

        Any other fault is returned as a failed ``BetResult``.
        """
        if not self.is_connected:
            raise NotConnectedError(f"Provider {self.name} is not connected", provider=self.name)
        request.validate()

        started = self._clock.monotonic()
        try:
            self._emit(BetPlaced(provider=self.name, request=request))
            result = await self._do_place_bet(request)
        except (NotConnectedError, ValidationError):
            raise
        except Exception as exc:
            elapsed = self._elapsed_ms(started)
            self.last_error = str(exc) or "Bet execution failed"
            self._record(success=False, elapsed=elapsed)
            logger.warning(
                "Bet execution raised", provider=self.name, error=self.last_error
            )
            self._emit(ProviderError(provider=self.name, error=self.last_error, request=request))
            return BetResult.failure(self.last_error, execution_time=elapsed)

        elapsed = self._elapsed_ms(started)
        result = result.with_execution_time(elapsed)
        self._record(success=result.success, elapsed=elapsed)
        if not result.success:
            self.last_error = result.error
        self._emit(BetResultEvent(provider=self.name, result=result))
        return result

    def get_status(self) -> ProviderStatus:
        success_rate = (
            self._successful_bets / self._total_bets * 100 if self._total_bets else 0.0
        )
        response_time = (
            self._total_response_time / self._total_bets if self._total_bets else 0.0
        )
        return ProviderStatus(
            name=self.name,
            priority=self.priority,
            available=self.is_available(),
            connected=self.is_connected,
            last_error=self.last_error,
            response_time=response_time,
            success_rate=success_rate,
        )

    def get_metrics(self) -> dict[str, Any]:
        return {
            "total_bets": self._total_bets,
            "successful_bets": self._successful_bets,
            "total_response_time": self._total_response_time,
            "last_bet_time": self._last_bet_time,
        }

    def add_listener(self, listener: ProviderListener) -> None:
        self.events.subscribe(listener)

    def remove_listener(self, listener: ProviderListener) -> None:
        self.events.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit(self, event: ProviderEvent) -> None:
        self.events.emit(event)

    def _mark_lost(self, reason: str) -> None:
        """Record that the substrate went away without a disconnect() call."""
        if not self.is_connected:
            return
        self.is_connected = False
        self.last_error = reason
        logger.warning("Provider connection lost", provider=self.name, reason=reason)
        self._emit(ProviderError(provider=self.name, error=reason))
        self._emit(SessionEnd(provider=self.name, metrics=self.get_metrics()))

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock.monotonic() - started) * 1000

    def _record(self, *, success: bool, elapsed: float) -> None:
        self._total_bets += 1
        if success:
            self._successful_bets += 1
        self._total_response_time += elapsed
        self._last_bet_time = self._clock.time()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


__all__ = ["BaseBettingProvider"]
