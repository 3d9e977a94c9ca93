"""Risk and behaviour configuration for an automation session."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from betting_automation.config.constants import DEFAULT_MAX_RETRIES
from betting_automation.errors import ConfigurationError

ProviderHint = Literal["auto", "sandbox", "web"]
LogLevel = Literal["debug", "info", "warn", "error"]


class AutomationConfig(BaseModel):
    """Every recognised automation setting, typed and validated.

    Instances are immutable: updates produce a new object so readers always
    see a consistent snapshot.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(
        default=False,
        description="Operator-facing on/off switch stored for front ends; the core never reads it.",
    )
    provider: ProviderHint = Field(
        default="auto", description="Preferred backend kind; 'auto' keeps priority order."
    )
    max_bet_amount: float = Field(default=100.0, gt=0)
    max_loss_per_session: float = Field(default=1000.0, ge=0)
    stop_loss_percentage: float = Field(default=20.0, ge=0, le=100)
    take_profit_percentage: float = Field(default=50.0, ge=0)
    cooldown_between: float = Field(
        default=1.0, ge=0, description="Minimum seconds between consecutive bets."
    )
    retry_attempts: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    enable_notifications: bool = True
    log_level: LogLevel = "info"

    def with_updates(self, **changes: Any) -> AutomationConfig:
        """Return a validated copy with ``changes`` applied."""
        try:
            return AutomationConfig.model_validate({**self.model_dump(), **changes})
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            key = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(
                f"Invalid automation setting {key}: {first.get('msg')}", config_key=key
            ) from exc

    @property
    def logging_level(self) -> str:
        return "WARNING" if self.log_level == "warn" else self.log_level.upper()


__all__ = ["AutomationConfig", "ProviderHint", "LogLevel"]
