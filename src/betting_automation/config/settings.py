"""Typed configuration backed by environment variables."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import ClassVar

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from betting_automation.config.automation_config import AutomationConfig, LogLevel, ProviderHint
from betting_automation.config.constants import DEFAULT_MAX_RETRIES
from betting_automation.core.types import Credentials, SiteType
from betting_automation.errors import ConfigurationError

_DEFAULT_ENV_FILES: tuple[Path, ...] = (
    Path(".env"),
    Path("config/environments/.env"),
)


class AutomationSettings(BaseSettings):
    """Credentials and automation limits loaded from ``BETTING_AUTOMATION_*`` variables."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="BETTING_AUTOMATION_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    site_url: str = Field(default="", description="Entry URL of the betting site.")
    username: str = Field(default="", description="Account login.")
    password: SecretStr = Field(default=SecretStr(""), description="Account password.")
    site_type: SiteType = SiteType.OTHER

    provider: ProviderHint = "auto"
    max_bet_amount: float = 100.0
    max_loss_per_session: float = 1000.0
    stop_loss_percentage: float = 20.0
    take_profit_percentage: float = 50.0
    cooldown_between: float = 1.0
    retry_attempts: int = DEFAULT_MAX_RETRIES
    enable_notifications: bool = True
    log_level: LogLevel = "info"

    log_dir: Path | None = Field(
        default=None, description="Directory for rotating log files; console only when unset."
    )
    json_logs: bool = False

    def credentials(self) -> Credentials:
        """Build login credentials, failing loudly when any part is missing."""
        missing = [
            name
            for name, value in (
                ("site_url", self.site_url),
                ("username", self.username),
                ("password", self.password.get_secret_value()),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Betting site credentials not found. Set "
                + ", ".join(f"BETTING_AUTOMATION_{name.upper()}" for name in missing),
                config_key=missing[0],
            )
        return Credentials(
            site_url=self.site_url,
            username=self.username,
            password=self.password.get_secret_value(),
            site_type=self.site_type,
        )

    def automation_config(self, **overrides: object) -> AutomationConfig:
        fields = {
            name: getattr(self, name)
            for name in AutomationConfig.model_fields
            if name in type(self).model_fields
        }
        fields.update(overrides)
        return AutomationConfig.model_validate(fields)


def _existing_env_files() -> list[str]:
    return [str(path) for path in _DEFAULT_ENV_FILES if path.exists()]


@lru_cache
def get_settings(_env_files: Sequence[str] | None = None) -> AutomationSettings:
    """Load settings once per process, respecting `.env` fallbacks."""
    env_files = list(_env_files) if _env_files is not None else _existing_env_files()
    if env_files:
        return AutomationSettings(_env_file=env_files)
    return AutomationSettings()


__all__ = ["AutomationSettings", "get_settings"]
