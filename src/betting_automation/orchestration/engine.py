"""
Execution engine: backend registry, session, retry/failover and metrics.

State machine::

    idle -> starting -> running -> stopping -> idle
                 \\          \\
                  `-> idle    `-> error   (providers exhausted)
                                    error -> stopping -> idle

A stop() that arrives while the engine is still starting is ignored; the
start completes and a later stop() closes the session.

The engine is the single writer of ``BettingSession`` and
``AutomationMetrics``. Bets are serialised: a second ``execute`` that
arrives while one is in flight is rejected.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from dataclasses import replace
from enum import Enum
from typing import Any

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.config.constants import RETRY_BASE_DELAY
from betting_automation.core.events import (
    BetCompleted,
    BetFailed,
    BetPlaced,
    BetResultEvent,
    ConfigUpdated,
    EngineEvent,
    EngineStarted,
    EngineStopped,
    EventChannel,
    ProviderConnected,
    ProviderError,
    ProviderEvent,
    ProviderEventForwarded,
    ProviderSwitched,
    SessionEnd,
    SessionStart,
)
from betting_automation.core.types import (
    AutomationMetrics,
    BetRequest,
    BetResult,
    BettingSession,
    Credentials,
    SessionStatus,
)
from betting_automation.errors import (
    AutomationError,
    EngineStateError,
    ProviderConnectionError,
    ProvidersExhaustedError,
    ValidationError,
)
from betting_automation.logging import correlation_context
from betting_automation.providers.base import BaseBettingProvider
from betting_automation.utilities.backoff_policy import evaluate_linear_retry
from betting_automation.utilities.logging_patterns import (
    get_logger,
    log_bet_event,
    log_error_with_context,
    log_operation,
)
from betting_automation.utilities.time_provider import TimeProvider, get_clock

logger = get_logger(__name__, component="execution_engine")

# Public names for forwarded provider events
_FORWARDED_EVENT_NAMES = {
    SessionStart.kind: "connected",
    SessionEnd.kind: "disconnected",
    ProviderError.kind: "error",
    BetPlaced.kind: "bet_placed",
    BetResultEvent.kind: "bet_result",
}


class EngineState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


class ExecutionEngine:
    """Drives bets through the best available backend."""

    def __init__(
        self,
        config: AutomationConfig,
        providers: Iterable[BaseBettingProvider] = (),
        *,
        clock: TimeProvider | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self._config = config
        self._clock = clock or get_clock()
        self._retry_base_delay = retry_base_delay
        self._max_retries = max(1, config.retry_attempts)
        self._retry_attempts = 0

        self._providers: dict[str, BaseBettingProvider] = {}
        self._active: BaseBettingProvider | None = None
        self._credentials: Credentials | None = None
        self._session: BettingSession | None = None
        self._metrics = AutomationMetrics(last_update=self._clock.now_utc())
        self._state = EngineState.IDLE
        self._started_at = self._clock.monotonic()

        self._lock = asyncio.Lock()
        self._executing = False
        self._recovery_task: asyncio.Task[None] | None = None

        self.events: EventChannel[EngineEvent] = EventChannel("engine")

        for provider in providers:
            self.register_provider(provider)

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def config(self) -> AutomationConfig:
        return self._config

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def current_provider(self) -> str | None:
        return self._active.name if self._active is not None else None

    @property
    def current_session(self) -> BettingSession | None:
        return replace(self._session) if self._session is not None else None

    @property
    def current_metrics(self) -> AutomationMetrics:
        return replace(self._metrics)

    @property
    def providers(self) -> list[BaseBettingProvider]:
        return sorted(self._providers.values(), key=lambda p: p.priority)

    # ------------------------------------------------------------------
    # Registry and configuration
    # ------------------------------------------------------------------

    def register_provider(self, provider: BaseBettingProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Provider {provider.name} is already registered")
        self._providers[provider.name] = provider
        provider.add_listener(lambda event, source=provider: self._on_provider_event(source, event))
        logger.info("Provider registered", provider=provider.name, priority=provider.priority)

    def update_config(self, config: AutomationConfig) -> None:
        self._config = config
        self._max_retries = max(1, config.retry_attempts)
        self.events.emit(ConfigUpdated(config=config.model_dump()))

    def set_max_retries(self, retries: int) -> None:
        self._max_retries = max(1, retries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, credentials: Credentials) -> None:
        if self._state is EngineState.ERROR:
            raise EngineStateError(
                "Engine is in an error state; call stop() before starting again",
                state=self._state.value,
            )
        if self._state is not EngineState.IDLE:
            raise EngineStateError("Engine is already running", state=self._state.value)

        self._state = EngineState.STARTING
        self._credentials = credentials
        self._session = self._new_session()
        self._retry_attempts = 0

        with log_operation("engine_start", logger):
            provider = await self._connect_first(self._ordered_providers(), credentials)

        if provider is None:
            self._state = EngineState.IDLE
            self._session = None
            self._credentials = None
            raise ProviderConnectionError("Could not connect to any provider")

        self._active = provider
        self._started_at = self._clock.monotonic()
        self._state = EngineState.RUNNING
        self.events.emit(ProviderConnected(provider=provider.name))
        self.events.emit(EngineStarted(session=self.current_session))
        logger.info("Engine started", provider=provider.name, session_id=self._session.id)

    async def stop(self) -> None:
        """Disconnect and close the session. No-op unless running or in error."""
        if self._state not in (EngineState.RUNNING, EngineState.ERROR):
            return

        self._state = EngineState.STOPPING
        await self._cancel_recovery()
        active, self._active = self._active, None

        if active is not None:
            try:
                await active.disconnect()
            except Exception as exc:
                logger.warning("Provider disconnect failed during stop", provider=active.name, error=str(exc))

        if self._session is not None:
            self._session.end_time = self._clock.now_utc()
            self._session.status = SessionStatus.STOPPED

        self._state = EngineState.IDLE
        self.events.emit(EngineStopped(session=self.current_session, metrics=self.current_metrics))
        logger.info("Engine stopped")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, request: BetRequest) -> BetResult:
        """Place one bet with retry and failover.

        Raises:
            EngineStateError: not running, no active backend, or a bet is in flight
            ValidationError: malformed request (no backend was contacted)
            ProvidersExhaustedError: every backend failed
        """
        if self._state is not EngineState.RUNNING or self._active is None:
            raise EngineStateError(
                "Engine is not running or no provider is connected", state=self._state.value
            )
        if self._executing:
            raise EngineStateError("An action is already executing", state=self._state.value)
        request.validate()

        self._executing = True
        try:
            async with self._lock:
                with correlation_context(table_id=request.table_id, strategy=request.strategy):
                    return await self._execute_locked(request)
        finally:
            self._executing = False

    async def _execute_locked(self, request: BetRequest) -> BetResult:
        started = self._clock.monotonic()
        try:
            result = await self._execute_with_failover(request)
        except AutomationError as exc:
            failure = BetResult.failure(exc.message, execution_time=self._elapsed_ms(started))
            log_error_with_context(
                exc, "execute_bet", component="execution_engine", logger=logger, table_id=request.table_id
            )
            self._record(request, failure)
            self.events.emit(BetFailed(result=failure))
            raise

        self._record(request, result)
        log_bet_event(
            "Bet settled",
            request.table_id,
            logger,
            provider=self.current_provider,
            bet_id=result.bet_id,
            profit=result.profit,
        )
        self.events.emit(BetCompleted(result=result))
        return result

    async def _execute_with_failover(self, request: BetRequest) -> BetResult:
        tried: set[str] = set()
        self._retry_attempts = 0

        while True:
            provider = self._active
            if provider is None:
                if await self._fail_over(tried):
                    continue
                raise self._exhausted(tried)
            tried.add(provider.name)

            try:
                result = await provider.place_bet(request)
            except ValidationError:
                raise
            except Exception as exc:
                result = BetResult.failure(str(exc) or type(exc).__name__)

            if result.success:
                self._retry_attempts = 0
                return result

            self._retry_attempts += 1
            logger.warning(
                "Bet attempt failed",
                provider=provider.name,
                attempt=self._retry_attempts,
                error=result.error,
            )
            if not provider.is_connected:
                # a dead connection cannot recover by retrying
                self._retry_attempts = self._max_retries

            decision = evaluate_linear_retry(
                attempt=self._retry_attempts,
                max_retries=self._max_retries,
                base_delay=self._retry_base_delay,
            )
            if decision.retries_exhausted:
                if await self._fail_over(tried):
                    self._retry_attempts = 0
                    continue
                raise self._exhausted(tried)

            await asyncio.sleep(decision.delay_seconds)

    def _exhausted(self, tried: set[str]) -> ProvidersExhaustedError:
        self._state = EngineState.ERROR
        if self._session is not None:
            self._session.status = SessionStatus.ERROR
        logger.error("All providers exhausted", tried=sorted(tried))
        return ProvidersExhaustedError(
            f"All providers exhausted after {self._max_retries} attempts each",
            tried=sorted(tried),
        )

    # ------------------------------------------------------------------
    # Provider selection
    # ------------------------------------------------------------------

    def _ordered_providers(self, exclude: Iterable[str] = ()) -> list[BaseBettingProvider]:
        excluded = set(exclude)
        hint = self._config.provider
        candidates = [p for p in self._providers.values() if p.name not in excluded]
        return sorted(
            candidates,
            key=lambda p: (0 if hint != "auto" and p.kind == hint else 1, p.priority),
        )

    async def _connect_first(
        self,
        candidates: list[BaseBettingProvider],
        credentials: Credentials,
        tried: set[str] | None = None,
    ) -> BaseBettingProvider | None:
        for provider in candidates:
            if tried is not None:
                tried.add(provider.name)
            if not self._probe(provider):
                logger.info("Provider not available", provider=provider.name)
                continue
            try:
                await provider.connect(credentials)
            except Exception as exc:
                logger.warning("Provider connection failed", provider=provider.name, error=str(exc))
                continue
            return provider
        return None

    @staticmethod
    def _probe(provider: BaseBettingProvider) -> bool:
        try:
            return bool(provider.is_available())
        except Exception as exc:
            logger.warning("Provider availability probe raised", provider=provider.name, error=str(exc))
            return False

    async def _fail_over(self, tried: set[str]) -> bool:
        """Swap the active backend for the next untried one. True on success."""
        current, self._active = self._active, None
        if current is not None:
            tried.add(current.name)
            try:
                await current.disconnect()
            except Exception as exc:
                logger.warning("Provider disconnect failed", provider=current.name, error=str(exc))

        if self._credentials is None:
            return False

        replacement = await self._connect_first(
            self._ordered_providers(exclude=tried), self._credentials, tried
        )
        if replacement is None:
            logger.error("No alternative provider could be connected", tried=sorted(tried))
            return False

        self._active = replacement
        from_name = current.name if current is not None else ""
        logger.info("Provider switched", from_provider=from_name, to_provider=replacement.name)
        self.events.emit(ProviderSwitched(from_provider=from_name, to_provider=replacement.name))
        return True

    async def force_provider_switch(self) -> bool:
        if self._state is not EngineState.RUNNING:
            return False
        async with self._lock:
            if self._state is not EngineState.RUNNING:
                return False
            return await self._fail_over(set())

    # ------------------------------------------------------------------
    # Provider events and proactive recovery
    # ------------------------------------------------------------------

    def _on_provider_event(self, provider: BaseBettingProvider, event: ProviderEvent) -> None:
        self.events.emit(
            ProviderEventForwarded(
                event_type=_FORWARDED_EVENT_NAMES.get(event.kind, event.kind),
                provider=provider.name,
                data=_provider_event_data(event),
            )
        )

        if event.kind not in (ProviderError.kind, SessionEnd.kind):
            return
        if provider is not self._active or self._state is not EngineState.RUNNING:
            return
        if self._executing:
            return
        if self._recovery_task is not None and not self._recovery_task.done():
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop; cannot schedule provider recovery", provider=provider.name)
            return
        logger.warning("Active provider reported a fault", provider=provider.name, event=event.kind)
        self._recovery_task = loop.create_task(self._recover(provider))

    async def _recover(self, lost: BaseBettingProvider) -> None:
        async with self._lock:
            if self._state is not EngineState.RUNNING or self._active is not lost:
                return
            if not await self._fail_over(set()):
                self._state = EngineState.ERROR
                if self._session is not None:
                    self._session.status = SessionStatus.ERROR
                logger.error("Proactive failover found no provider", lost=lost.name)

    async def _cancel_recovery(self) -> None:
        task, self._recovery_task = self._recovery_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _new_session(self) -> BettingSession:
        now = self._clock.now_utc()
        return BettingSession(
            id=f"session_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}",
            start_time=now,
        )

    def _record(self, request: BetRequest, result: BetResult) -> None:
        session = self._session
        if session is not None:
            session.total_bets += 1
            session.total_wagered += request.total_amount
            if result.success:
                profit = result.profit or 0.0
                session.total_won += profit
                if profit > 0:
                    session.winning_bets += 1
                session.strategy = request.strategy
                session.table_id = request.table_id

        self._metrics.record(
            result,
            execution_time=result.execution_time,
            uptime=self._elapsed_ms(self._started_at),
            now=self._clock.now_utc(),
        )

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock.monotonic() - started) * 1000

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_provider_status(self) -> list[dict[str, Any]]:
        statuses = []
        for provider in self.providers:
            status = provider.get_status()
            statuses.append(
                {
                    "name": status.name,
                    "priority": status.priority,
                    "kind": provider.kind,
                    "is_active": provider is self._active,
                    "is_connected": status.connected,
                    "available": status.available,
                    "success_rate": status.success_rate,
                    "response_time": status.response_time,
                    "last_error": status.last_error,
                }
            )
        return statuses

    def get_detailed_status(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "is_running": self.is_active,
            "active_provider": self.current_provider,
            "session": self._session.to_dict() if self._session is not None else None,
            "metrics": self._metrics.to_dict(),
            "providers": self.get_provider_status(),
            "retry_attempts": self._retry_attempts,
            "max_retries": self._max_retries,
        }


def _provider_event_data(event: ProviderEvent) -> dict[str, Any]:
    if isinstance(event, SessionStart):
        return {"site": event.site}
    if isinstance(event, SessionEnd):
        return {"metrics": dict(event.metrics)}
    if isinstance(event, ProviderError):
        return {"error": event.error}
    if isinstance(event, BetPlaced) and event.request is not None:
        return {"table_id": event.request.table_id, "total_amount": event.request.total_amount}
    if isinstance(event, BetResultEvent) and event.result is not None:
        return {"result": event.result.to_dict()}
    return {}


__all__ = ["ExecutionEngine", "EngineState"]
