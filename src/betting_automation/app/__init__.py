"""Application wiring."""

from betting_automation.app.container import AutomationContainer

__all__ = ["AutomationContainer"]
