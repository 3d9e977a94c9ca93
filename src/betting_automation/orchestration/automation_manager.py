"""
Automation manager: lifecycle facade and risk governance around one engine.

The manager owns the ``AutomationConfig`` snapshot, applies the risk gates
around every bet and republishes engine events on a single public
notification channel.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.core.events import (
    BetCompleted,
    BetFailed,
    ConfigUpdated,
    EngineEvent,
    EngineStarted,
    EngineStopped,
    EventChannel,
    Notification,
    ProviderConnected,
    ProviderEventForwarded,
    ProviderSwitched,
)
from betting_automation.core.types import AutomationMetrics, BetRequest, BetResult, BettingSession, Credentials
from betting_automation.errors import AutomationError, AutomationNotActiveError, EngineStateError
from betting_automation.logging import set_package_level
from betting_automation.orchestration.engine import EngineState, ExecutionEngine
from betting_automation.orchestration.risk_gate_validator import RiskGateValidator
from betting_automation.utilities.logging_patterns import get_logger, log_configuration_change
from betting_automation.utilities.time_provider import TimeProvider, get_clock

logger = get_logger(__name__, component="automation_manager")

EngineFactory = Callable[[AutomationConfig], ExecutionEngine]

PROVIDER_DISPLAY_NAMES = {
    "SandboxProvider": "Sandbox (Recommended)",
    "WebAutomation": "Web automation (Playwright)",
}

_NOTIFICATION_NAMES = {
    EngineStarted.kind: "automation_started",
    EngineStopped.kind: "automation_stopped",
    BetCompleted.kind: "bet_completed",
    BetFailed.kind: "bet_failed",
    ProviderConnected.kind: "provider_connected",
    ProviderSwitched.kind: "provider_switched",
    ProviderEventForwarded.kind: "provider_event",
    ConfigUpdated.kind: "config_updated",
}


@dataclass(frozen=True)
class ProviderOption:
    value: str
    label: str
    priority: int


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    provider: str | None = None
    error: str | None = None


class AutomationManager:
    """Public entry point for starting, betting through and stopping automation."""

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        config: AutomationConfig | None = None,
        risk_gate: RiskGateValidator | None = None,
        clock: TimeProvider | None = None,
    ) -> None:
        self._engine_factory = engine_factory
        self._config = config or AutomationConfig()
        self._risk_gate = risk_gate or RiskGateValidator()
        self._clock = clock or get_clock()
        self._engine: ExecutionEngine | None = None
        self._last_bet_at: float | None = None
        self._take_profit_notified = False
        self.notifications: EventChannel[Notification] = EventChannel("automation")

    @property
    def config(self) -> AutomationConfig:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, config: AutomationConfig | None = None, **overrides: Any) -> None:
        if self._engine is not None and self._engine.state is not EngineState.IDLE:
            raise EngineStateError("Cannot re-initialize while automation is running")
        if self._engine is not None:
            self._engine.events.unsubscribe(self._on_engine_event)

        if config is not None:
            self._config = config
        if overrides:
            self._config = self._config.with_updates(**overrides)

        self._engine = self._engine_factory(self._config)
        self._engine.events.subscribe(self._on_engine_event)
        set_package_level(self._config.logging_level)
        logger.info(
            "Automation manager initialized",
            provider_hint=self._config.provider,
            providers=[p.name for p in self._engine.providers],
        )

    async def start_automation(self, credentials: Credentials) -> None:
        engine = self._require_engine()
        if engine.is_active:
            raise EngineStateError("Automation is already active", state=engine.state.value)

        await engine.start(credentials)
        self._last_bet_at = None
        self._take_profit_notified = False
        logger.info("Automation started", provider=engine.current_provider)

    async def stop_automation(self) -> None:
        engine = self._require_engine()
        if engine.state is EngineState.IDLE:
            logger.info("Automation already stopped")
            return
        await engine.stop()
        logger.info("Automation stopped")

    async def dispose(self) -> None:
        engine, self._engine = self._engine, None
        if engine is None:
            return
        if engine.state is not EngineState.IDLE:
            await engine.stop()
        engine.events.unsubscribe(self._on_engine_event)
        logger.info("Automation manager disposed")

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    async def place_bet(self, request: BetRequest) -> BetResult:
        engine = self._require_engine()
        if not engine.is_active:
            raise AutomationNotActiveError()

        self._risk_gate.validate_pre_execution(request, self._config, engine.current_metrics)
        await self._wait_for_cooldown()

        try:
            result = await engine.execute(request)
        finally:
            self._last_bet_at = self._clock.monotonic()

        await self._check_post_execution_limits()
        return result

    async def _wait_for_cooldown(self) -> None:
        cooldown = self._config.cooldown_between
        if self._last_bet_at is None or cooldown <= 0:
            return
        remaining = cooldown - (self._clock.monotonic() - self._last_bet_at)
        if remaining > 0:
            logger.debug("Waiting for cooldown", seconds=round(remaining, 3))
            await asyncio.sleep(remaining)

    async def _check_post_execution_limits(self) -> None:
        engine = self._require_engine()
        report = self._risk_gate.evaluate_post_execution(
            self._config, engine.current_metrics, engine.current_session
        )

        if report.stop_loss_reached:
            logger.warning(
                "Stop loss reached; consider stopping automation",
                loss_percentage=report.loss_percentage,
            )
            self._notify("stop_loss_reached", {"percentage": report.loss_percentage})

        if report.take_profit_reached and not self._take_profit_notified:
            self._take_profit_notified = True
            logger.info("Take profit reached", profit_percentage=report.profit_percentage)
            self._notify("take_profit_reached", {"percentage": report.profit_percentage})

        if report.session_loss_limit_reached:
            logger.warning("Session loss limit reached; stopping automation", total_loss=report.total_loss)
            await self.stop_automation()
            self._notify("session_loss_limit_reached", {"total_loss": report.total_loss})

    # ------------------------------------------------------------------
    # Configuration and control
    # ------------------------------------------------------------------

    def update_config(self, **changes: Any) -> AutomationConfig:
        previous = self._config
        updated = previous.with_updates(**changes)
        self._config = updated

        for key in changes:
            old, new = getattr(previous, key), getattr(updated, key)
            if old != new:
                log_configuration_change(key, old, new, component="automation_manager", logger=logger)

        set_package_level(updated.logging_level)
        if self._engine is not None:
            self._engine.update_config(updated)
        return updated

    async def force_provider_switch(self) -> bool:
        return await self._require_engine().force_provider_switch()

    async def test_connection(self, credentials: Credentials) -> ConnectionTestResult:
        """Connect and disconnect on a throwaway engine; shared state is untouched."""
        engine = self._engine_factory(self._config)
        try:
            await engine.start(credentials)
        except AutomationError as exc:
            return ConnectionTestResult(success=False, error=exc.message)

        provider = engine.current_provider
        await engine.stop()
        return ConnectionTestResult(success=True, provider=provider)

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    def is_active(self) -> bool:
        return self._engine is not None and self._engine.is_active

    def get_current_provider(self) -> str | None:
        return self._engine.current_provider if self._engine is not None else None

    def get_current_session(self) -> BettingSession | None:
        return self._engine.current_session if self._engine is not None else None

    def get_metrics(self) -> AutomationMetrics | None:
        return self._engine.current_metrics if self._engine is not None else None

    def get_detailed_status(self) -> dict[str, Any]:
        if self._engine is None:
            return {"initialized": False}
        return {
            "initialized": True,
            "config": self._config.model_dump(),
            **self._engine.get_detailed_status(),
        }

    def get_provider_options(self) -> list[ProviderOption]:
        if self._engine is None:
            return []
        return [
            ProviderOption(
                value=status["name"],
                label=PROVIDER_DISPLAY_NAMES.get(status["name"], status["name"]),
                priority=status["priority"],
            )
            for status in self._engine.get_provider_status()
        ]

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _on_engine_event(self, event: EngineEvent) -> None:
        name = _NOTIFICATION_NAMES.get(event.kind)
        if name is None:
            return
        self._notify(name, _engine_event_payload(event))

    def _notify(self, name: str, payload: dict[str, Any]) -> None:
        logger.info("Automation event", event_name=name)
        if not self._config.enable_notifications:
            return
        self.notifications.emit(Notification(name=name, payload=payload, timestamp=self._clock.now_utc()))

    def _require_engine(self) -> ExecutionEngine:
        if self._engine is None:
            raise EngineStateError("Manager is not initialized. Call initialize() first.")
        return self._engine


def _engine_event_payload(event: EngineEvent) -> dict[str, Any]:
    if isinstance(event, EngineStarted):
        return {"session": event.session.to_dict() if event.session else None}
    if isinstance(event, EngineStopped):
        return {
            "session": event.session.to_dict() if event.session else None,
            "metrics": event.metrics.to_dict() if event.metrics else None,
        }
    if isinstance(event, (BetCompleted, BetFailed)):
        return event.result.to_dict() if event.result else {}
    if isinstance(event, ProviderConnected):
        return {"provider": event.provider}
    if isinstance(event, ProviderSwitched):
        return {"from": event.from_provider, "to": event.to_provider}
    if isinstance(event, ProviderEventForwarded):
        return {"type": event.event_type, "provider": event.provider, "data": event.data}
    if isinstance(event, ConfigUpdated):
        return {"config": dict(event.config)}
    return {}


__all__ = ["AutomationManager", "ConnectionTestResult", "EngineFactory", "ProviderOption"]
