"""Risk gates evaluated around every bet.

Pre-execution gates reject a bet before any backend is touched. Post-execution
gates only report; the manager decides whether to warn or stop.
"""

from __future__ import annotations

from dataclasses import dataclass

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.config.constants import CIRCUIT_BREAKER_ERROR_RATE
from betting_automation.core.types import AutomationMetrics, BetRequest, BettingSession
from betting_automation.errors import RiskLimitExceeded
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="risk_gate")


@dataclass(frozen=True)
class PostExecutionReport:
    total_loss: float
    loss_percentage: float
    profit_percentage: float
    stop_loss_reached: bool
    take_profit_reached: bool
    session_loss_limit_reached: bool


class RiskGateValidator:
    """Validates risk limits before and after each bet.

    Example:
        >>> validator = RiskGateValidator()
        >>> validator.validate_pre_execution(request, config, metrics)  # raises on breach
        >>> report = validator.evaluate_post_execution(config, metrics, session)
        >>> report.session_loss_limit_reached
        False
    """

    def __init__(self, circuit_breaker_error_rate: float = CIRCUIT_BREAKER_ERROR_RATE) -> None:
        self.circuit_breaker_error_rate = circuit_breaker_error_rate

    def validate_pre_execution(
        self,
        request: BetRequest,
        config: AutomationConfig,
        metrics: AutomationMetrics | None,
    ) -> None:
        """Raise ``RiskLimitExceeded`` when the bet must not be placed.

        Checks, in order:
        1. Bet amount against ``max_bet_amount``
        2. Net session loss against ``max_loss_per_session``
        3. Rolling error rate against the circuit-breaker threshold
        """
        if request.total_amount > config.max_bet_amount:
            raise RiskLimitExceeded(
                f"Bet amount ({request.total_amount:g}) exceeds the maximum allowed "
                f"({config.max_bet_amount:g})",
                limit_type="max_bet_amount",
                limit_value=config.max_bet_amount,
                current_value=request.total_amount,
            )

        if metrics is None:
            return

        if metrics.total_profit < -config.max_loss_per_session:
            raise RiskLimitExceeded(
                f"Session loss limit reached ({config.max_loss_per_session:g})",
                limit_type="max_loss_per_session",
                limit_value=config.max_loss_per_session,
                current_value=-metrics.total_profit,
            )

        if metrics.error_rate > self.circuit_breaker_error_rate:
            logger.warning(
                "Circuit breaker tripped",
                error_rate=metrics.error_rate,
                threshold=self.circuit_breaker_error_rate,
            )
            raise RiskLimitExceeded(
                "Too many consecutive failures detected. Stopping for safety.",
                limit_type="error_rate",
                limit_value=self.circuit_breaker_error_rate,
                current_value=metrics.error_rate,
            )

    def evaluate_post_execution(
        self,
        config: AutomationConfig,
        metrics: AutomationMetrics,
        session: BettingSession | None = None,
    ) -> PostExecutionReport:
        # Net profit is the only loss signal kept, so any net loss reads as 100%
        total_loss = abs(min(0.0, metrics.total_profit))
        total_gain = max(0.0, metrics.total_profit)
        loss_percentage = total_loss / (total_gain + total_loss) * 100 if total_loss > 0 else 0.0

        wagered = session.total_wagered if session is not None else 0.0
        profit_percentage = metrics.total_profit / wagered * 100 if wagered > 0 else 0.0

        return PostExecutionReport(
            total_loss=total_loss,
            loss_percentage=loss_percentage,
            profit_percentage=profit_percentage,
            stop_loss_reached=total_loss > 0 and loss_percentage >= config.stop_loss_percentage,
            take_profit_reached=(
                wagered > 0
                and metrics.total_profit > 0
                and profit_percentage >= config.take_profit_percentage
            ),
            session_loss_limit_reached=total_loss > 0 and total_loss >= config.max_loss_per_session,
        )


__all__ = ["RiskGateValidator", "PostExecutionReport"]
