"""Helper utilities for CLI command implementations."""

from __future__ import annotations

from argparse import Namespace
from typing import Any

from betting_automation.app.container import AutomationContainer, simulated_table_factory
from betting_automation.config.settings import AutomationSettings, get_settings
from betting_automation.core.types import Credentials
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="cli_services")

DEMO_CREDENTIALS = Credentials(
    site_url="https://sandbox.local/roulette",
    username="demo",
    password="demo",
)


def settings_from_args(args: Namespace) -> AutomationSettings:
    """Environment settings with CLI flags applied on top."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    provider = getattr(args, "provider", None)
    if provider:
        overrides["provider"] = provider
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


def build_container(args: Namespace, *, enable_web: bool = True, seed: int | None = None) -> AutomationContainer:
    settings = settings_from_args(args)
    return AutomationContainer(
        settings,
        table_driver_factory=simulated_table_factory(seed) if seed is not None else None,
        enable_web=enable_web,
    )


def has_credentials(settings: AutomationSettings) -> bool:
    return bool(settings.site_url and settings.username and settings.password.get_secret_value())


__all__ = ["DEMO_CREDENTIALS", "build_container", "has_credentials", "settings_from_args"]
