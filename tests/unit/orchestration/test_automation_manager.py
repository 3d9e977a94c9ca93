from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, patch

import pytest

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.core.events import Notification
from betting_automation.core.types import Credentials
from betting_automation.errors import (
    AutomationNotActiveError,
    ConfigurationError,
    EngineStateError,
    ProvidersExhaustedError,
    RiskLimitExceeded,
)
from betting_automation.orchestration.automation_manager import AutomationManager
from betting_automation.orchestration.engine import ExecutionEngine
from betting_automation.utilities.time_provider import FakeClock
from tests.factories import ScriptedProvider, failed, loss, make_request, win


class Harness:
    """Manager wired to a fresh pair of scripted providers per engine."""

    def __init__(
        self, clock: FakeClock, *, backup_available: bool = True, **provider_kwargs: object
    ) -> None:
        self.clock = clock
        self.backup_available = backup_available
        self.provider_kwargs = provider_kwargs
        self.engines: list[ExecutionEngine] = []
        self.primaries: list[ScriptedProvider] = []

    def engine_factory(self, config: AutomationConfig) -> ExecutionEngine:
        primary = ScriptedProvider("SandboxProvider", 1, clock=self.clock, **self.provider_kwargs)
        backup = ScriptedProvider(
            "WebAutomation", 3, clock=self.clock, available=self.backup_available
        )
        self.primaries.append(primary)
        engine = ExecutionEngine(config, [primary, backup], clock=self.clock, retry_base_delay=0)
        self.engines.append(engine)
        return engine

    @property
    def primary(self) -> ScriptedProvider:
        return self.primaries[-1]


@pytest.fixture
def make_manager(clock: FakeClock) -> Callable[..., tuple[AutomationManager, Harness, list[Notification]]]:
    def build(
        config: AutomationConfig | None = None,
        *,
        backup_available: bool = True,
        **provider_kwargs: object,
    ):
        harness = Harness(clock, backup_available=backup_available, **provider_kwargs)
        manager = AutomationManager(
            harness.engine_factory,
            config=config or AutomationConfig(cooldown_between=0.0),
            clock=clock,
        )
        notes: list[Notification] = []
        manager.notifications.subscribe(notes.append)
        return manager, harness, notes

    return build


def names(notes: list[Notification]) -> list[str]:
    return [note.name for note in notes if note.name != "provider_event"]


@pytest.mark.asyncio
async def test_lifecycle_notifications(make_manager, credentials: Credentials) -> None:
    manager, _, notes = make_manager()
    manager.initialize()

    await manager.start_automation(credentials)
    assert manager.is_active() is True
    assert manager.get_current_provider() == "SandboxProvider"

    await manager.stop_automation()
    await manager.stop_automation()

    assert manager.is_active() is False
    assert names(notes) == ["provider_connected", "automation_started", "automation_stopped"]


@pytest.mark.asyncio
async def test_operations_before_initialize_fail(make_manager, credentials: Credentials) -> None:
    manager, _, _ = make_manager()

    with pytest.raises(EngineStateError, match="not initialized"):
        await manager.start_automation(credentials)
    assert manager.get_detailed_status() == {"initialized": False}
    assert manager.get_provider_options() == []
    assert manager.get_metrics() is None


@pytest.mark.asyncio
async def test_second_start_is_rejected(make_manager, credentials: Credentials) -> None:
    manager, _, _ = make_manager()
    manager.initialize()
    await manager.start_automation(credentials)

    with pytest.raises(EngineStateError, match="already active"):
        await manager.start_automation(credentials)


@pytest.mark.asyncio
async def test_restart_after_exhaustion_needs_stop(make_manager, credentials: Credentials) -> None:
    manager, _, notes = make_manager(backup_available=False, outcomes=[failed()] * 3)
    manager.initialize()
    await manager.start_automation(credentials)

    with pytest.raises(ProvidersExhaustedError):
        await manager.place_bet(make_request())
    with pytest.raises(EngineStateError, match="error state"):
        await manager.start_automation(credentials)

    await manager.stop_automation()
    assert manager.get_current_session().status.value == "stopped"

    await manager.start_automation(credentials)
    assert manager.is_active() is True
    assert manager.get_current_session().status.value == "active"
    assert names(notes).count("automation_stopped") == 1


@pytest.mark.asyncio
async def test_place_bet_requires_active_automation(make_manager) -> None:
    manager, _, _ = make_manager()
    manager.initialize()

    with pytest.raises(AutomationNotActiveError):
        await manager.place_bet(make_request())


@pytest.mark.asyncio
async def test_oversized_bet_is_rejected_before_execution(
    make_manager, credentials: Credentials
) -> None:
    manager, harness, _ = make_manager()
    manager.initialize()
    await manager.start_automation(credentials)

    with pytest.raises(RiskLimitExceeded, match="exceeds the maximum allowed"):
        await manager.place_bet(make_request(150.0))

    assert harness.primary.bets == []
    assert manager.get_metrics().sessions_today == 0
    assert manager.get_current_session().total_bets == 0


@pytest.mark.asyncio
async def test_session_loss_limit_stops_automation(make_manager, credentials: Credentials) -> None:
    config = AutomationConfig(max_bet_amount=300.0, max_loss_per_session=1000.0, cooldown_between=0.0)
    manager, _, notes = make_manager(config, outcomes=[loss(250.0)] * 4)
    manager.initialize()
    await manager.start_automation(credentials)

    for _ in range(4):
        result = await manager.place_bet(make_request(250.0))
        assert result.profit == -250.0

    assert manager.is_active() is False
    assert manager.get_metrics().total_profit == -1000.0
    limit_notes = [n for n in notes if n.name == "session_loss_limit_reached"]
    assert len(limit_notes) == 1
    assert limit_notes[0].payload == {"total_loss": 1000.0}
    assert names(notes).count("stop_loss_reached") == 4
    assert names(notes).index("automation_stopped") < names(notes).index("session_loss_limit_reached")

    with pytest.raises(AutomationNotActiveError):
        await manager.place_bet(make_request(250.0))


@pytest.mark.asyncio
async def test_take_profit_is_notified_once(make_manager, credentials: Credentials) -> None:
    manager, _, notes = make_manager(outcomes=[win(10.0, 10.0), win(10.0, 10.0)])
    manager.initialize()
    await manager.start_automation(credentials)

    await manager.place_bet(make_request(10.0))
    await manager.place_bet(make_request(10.0))

    take_profit = [n for n in notes if n.name == "take_profit_reached"]
    assert len(take_profit) == 1
    assert take_profit[0].payload == {"percentage": 100.0}
    assert manager.is_active() is True


@pytest.mark.asyncio
async def test_cooldown_waits_between_bets(make_manager, credentials: Credentials) -> None:
    manager, harness, _ = make_manager(AutomationConfig(cooldown_between=1.5))
    manager.initialize()
    await manager.start_automation(credentials)

    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        await manager.place_bet(make_request())
        sleep.assert_not_awaited()

        harness.clock.advance(0.5)
        await manager.place_bet(make_request())
        sleep.assert_awaited_once_with(pytest.approx(1.0))

        sleep.reset_mock()
        harness.clock.advance(2.0)
        await manager.place_bet(make_request())
        sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_notifications_can_be_disabled(make_manager, credentials: Credentials) -> None:
    manager, _, notes = make_manager(AutomationConfig(enable_notifications=False, cooldown_between=0))
    manager.initialize()
    await manager.start_automation(credentials)
    await manager.place_bet(make_request())

    assert notes == []


def test_update_config_before_initialize_is_kept(make_manager) -> None:
    manager, harness, _ = make_manager()

    updated = manager.update_config(retry_attempts=5, max_bet_amount=50.0)
    manager.initialize()

    assert updated.retry_attempts == 5
    assert manager.config.max_bet_amount == 50.0
    assert harness.engines[-1].max_retries == 5


def test_update_config_propagates_to_engine(make_manager) -> None:
    manager, harness, notes = make_manager()
    manager.initialize()

    manager.update_config(retry_attempts=4)

    assert harness.engines[-1].max_retries == 4
    assert names(notes)[-1] == "config_updated"


@pytest.mark.asyncio
async def test_enabled_flag_is_stored_but_does_not_gate_bets(
    make_manager, credentials: Credentials
) -> None:
    manager, _, _ = make_manager()
    manager.initialize()
    assert manager.config.enabled is False

    await manager.start_automation(credentials)
    result = await manager.place_bet(make_request())

    assert result.success is True
    assert manager.update_config(enabled=True).enabled is True
    assert manager.get_detailed_status()["config"]["enabled"] is True


def test_invalid_update_leaves_config_untouched(make_manager) -> None:
    manager, _, _ = make_manager()
    before = manager.config

    with pytest.raises(ConfigurationError):
        manager.update_config(stop_loss_percentage=150)

    assert manager.config is before


@pytest.mark.asyncio
async def test_test_connection_uses_a_throwaway_engine(
    make_manager, credentials: Credentials
) -> None:
    manager, harness, _ = make_manager()
    manager.initialize()

    outcome = await manager.test_connection(credentials)

    assert outcome.success is True
    assert outcome.provider == "SandboxProvider"
    assert manager.is_active() is False
    assert len(harness.engines) == 2
    assert harness.primaries[-1].disconnect_calls == 1


@pytest.mark.asyncio
async def test_test_connection_reports_failure(make_manager, credentials: Credentials) -> None:
    manager, _, _ = make_manager(backup_available=False, connect_error=RuntimeError("refused"))

    outcome = await manager.test_connection(credentials)

    assert outcome.success is False
    assert outcome.error == "Could not connect to any provider"


def test_provider_options_use_display_labels(make_manager) -> None:
    manager, _, _ = make_manager()
    manager.initialize()

    options = manager.get_provider_options()

    assert [(o.value, o.label, o.priority) for o in options] == [
        ("SandboxProvider", "Sandbox (Recommended)", 1),
        ("WebAutomation", "Web automation (Playwright)", 3),
    ]


@pytest.mark.asyncio
async def test_dispose_stops_running_engine(make_manager, credentials: Credentials) -> None:
    manager, harness, notes = make_manager()
    manager.initialize()
    await manager.start_automation(credentials)

    await manager.dispose()

    assert manager.initialized is False
    assert harness.primary.is_connected is False
    assert "automation_stopped" in names(notes)
