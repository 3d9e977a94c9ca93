"""Configuration: automation limits, environment settings and tunable constants."""

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.config.settings import AutomationSettings, get_settings

__all__ = ["AutomationConfig", "AutomationSettings", "get_settings"]
