"""Core data contracts and events used across the automation core."""

from betting_automation.core.events import EventChannel, Notification
from betting_automation.core.types import (
    AutomationMetrics,
    BetRequest,
    BetResult,
    BetSelection,
    BettingSession,
    Credentials,
    ProviderStatus,
    SelectionType,
    SessionStatus,
    SiteType,
    WinningColor,
)

__all__ = [
    "AutomationMetrics",
    "BetRequest",
    "BetResult",
    "BetSelection",
    "BettingSession",
    "Credentials",
    "EventChannel",
    "Notification",
    "ProviderStatus",
    "SelectionType",
    "SessionStatus",
    "SiteType",
    "WinningColor",
]
