"""Property-based tests for session and metrics bookkeeping.

Tests critical accounting properties:
- Win rate and error rate always sum to 100 once a bet is recorded
- Net profit equals the sum of settled profits
- Running average bet time stays within the observed range
- Risk reports never flag a loss when the session is in profit
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from hypothesis import given, seed, settings
from hypothesis import strategies as st

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.core.types import AutomationMetrics, BetResult
from betting_automation.orchestration.risk_gate_validator import RiskGateValidator

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)

outcome_strategy = st.one_of(
    st.builds(
        lambda profit: BetResult(success=True, execution_time=0.0, payout=max(profit, 0.0), profit=profit),
        st.floats(min_value=-500, max_value=500, allow_nan=False, allow_infinity=False),
    ),
    st.just(BetResult.failure("rejected")),
)
timing_strategy = st.floats(min_value=0, max_value=60_000, allow_nan=False, allow_infinity=False)


@seed(4101)
@settings(max_examples=150, deadline=None)
@given(history=st.lists(st.tuples(outcome_strategy, timing_strategy), min_size=1, max_size=40))
def test_rates_partition_recorded_bets(history: list[tuple[BetResult, float]]) -> None:
    """
    Property: every recorded bet is either a success or an error, so the two
    running rates always sum to 100.
    """
    metrics = AutomationMetrics()
    for result, elapsed in history:
        metrics.record(result, execution_time=elapsed, uptime=0.0, now=NOW)

    assert metrics.sessions_today == len(history)
    assert metrics.win_rate + metrics.error_rate == pytest.approx(100.0)
    successes = sum(1 for result, _ in history if result.success)
    assert metrics.win_rate == pytest.approx(successes / len(history) * 100)


@seed(4102)
@settings(max_examples=150, deadline=None)
@given(history=st.lists(st.tuples(outcome_strategy, timing_strategy), min_size=1, max_size=40))
def test_profit_and_timing_track_history(history: list[tuple[BetResult, float]]) -> None:
    metrics = AutomationMetrics()
    for result, elapsed in history:
        metrics.record(result, execution_time=elapsed, uptime=0.0, now=NOW)

    expected_profit = sum(result.profit or 0.0 for result, _ in history)
    timings = [elapsed for _, elapsed in history]
    assert metrics.total_profit == pytest.approx(expected_profit, abs=1e-6)
    assert min(timings) - 1e-6 <= metrics.average_bet_time <= max(timings) + 1e-6


@seed(4103)
@settings(max_examples=200, deadline=None)
@given(
    total_profit=st.floats(min_value=0, max_value=10_000, allow_nan=False),
    stop_loss=st.floats(min_value=0, max_value=100, allow_nan=False),
)
def test_profitable_session_never_reports_loss(total_profit: float, stop_loss: float) -> None:
    report = RiskGateValidator().evaluate_post_execution(
        AutomationConfig(stop_loss_percentage=stop_loss),
        AutomationMetrics(total_profit=total_profit),
    )

    assert report.total_loss == 0.0
    assert report.stop_loss_reached is False
    assert report.session_loss_limit_reached is False
