"""Logging setup, JSON formatting and correlation context."""

from betting_automation.logging.correlation import (
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
    get_log_context,
)
from betting_automation.logging.json_formatter import StructuredJSONFormatter
from betting_automation.logging.setup import configure_logging, set_package_level

__all__ = [
    "configure_logging",
    "set_package_level",
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_log_context",
    "StructuredJSONFormatter",
]
