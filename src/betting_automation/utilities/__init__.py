"""
Shared utilities: clocks, datetime helpers, retry policy and structured logging.
"""

from .backoff_policy import RetryDecision, evaluate_linear_retry
from .datetime_helpers import utc_now
from .logging_patterns import get_logger, log_operation
from .time_provider import FakeClock, SystemClock, TimeProvider, get_clock

__all__ = [
    "get_logger",
    "log_operation",
    "utc_now",
    "RetryDecision",
    "evaluate_linear_retry",
    "TimeProvider",
    "SystemClock",
    "FakeClock",
    "get_clock",
]
