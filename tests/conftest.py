"""
Shared fixtures for the betting automation test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.config.settings import get_settings
from betting_automation.core.types import BetResult, Credentials
from betting_automation.errors import ExecutionError
from betting_automation.logging.correlation import correlation_id_var, domain_context_var
from betting_automation.utilities.time_provider import FakeClock
from tests.factories import ScriptedProvider


@pytest.fixture(autouse=True)
def reset_correlation_context():
    """Reset correlation context before and after each test to prevent pollution."""
    token_id = correlation_id_var.set("")
    token_domain = domain_context_var.set({})
    yield
    correlation_id_var.reset(token_id)
    domain_context_var.reset(token_domain)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc), start_monotonic=100.0)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        site_url="https://sandbox.local/roulette",
        username="player",
        password="hunter2",
    )


@pytest.fixture
def config() -> AutomationConfig:
    return AutomationConfig(cooldown_between=0.0)


@pytest.fixture
def provider_factory(clock: FakeClock) -> Callable[..., ScriptedProvider]:
    def build(name: str, priority: int, **kwargs: Any) -> ScriptedProvider:
        kwargs.setdefault("clock", clock)
        return ScriptedProvider(name, priority, **kwargs)

    return build


@pytest.fixture
def drop_connection() -> Callable[[ScriptedProvider], BetResult]:
    """Bet outcome that loses the connection mid-bet."""

    def outcome(provider: ScriptedProvider) -> BetResult:
        provider.drop()
        raise ExecutionError("socket closed")

    return outcome
