"""Execution backends: the adapter contract and its sandbox and browser implementations."""

from betting_automation.providers.base import BaseBettingProvider
from betting_automation.providers.deterministic_table import DeterministicTable
from betting_automation.providers.messaging import MessageBus, MessageType, SandboxContext
from betting_automation.providers.sandbox_agent import SandboxAgent, TableDriver
from betting_automation.providers.sandbox_provider import SandboxProvider
from betting_automation.providers.site_profiles import SiteProfile, SiteProfileRegistry
from betting_automation.providers.web_automation import WebAutomationProvider

__all__ = [
    "BaseBettingProvider",
    "DeterministicTable",
    "MessageBus",
    "MessageType",
    "SandboxAgent",
    "SandboxContext",
    "SandboxProvider",
    "SiteProfile",
    "SiteProfileRegistry",
    "TableDriver",
    "WebAutomationProvider",
]
