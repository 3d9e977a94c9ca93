"""
Centralized error handling for the betting automation core.

Every public operation either returns a result object or raises one of the
errors below. Messages are written to be shown to an operator as-is.
"""

import logging
import sys
import traceback
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from betting_automation.utilities.datetime_helpers import utc_now

if TYPE_CHECKING:  # pragma: no cover
    from betting_automation.utilities.logging_patterns import StructuredLogger

_logger: Optional["StructuredLogger"] = None


def _get_logger() -> "StructuredLogger":
    global _logger
    if _logger is None:
        from betting_automation.utilities.logging_patterns import get_logger as _get_structured_logger

        _logger = _get_structured_logger(__name__, component="errors")
    return _logger


def _capture_traceback() -> str:
    """Return the active traceback or, if none, a snapshot of the current stack."""

    exc_type, exc_value, exc_tb = sys.exc_info()
    if exc_type is not None and exc_tb is not None:
        return "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

    stack = traceback.format_stack()
    if not stack:
        return ""
    # Drop the last frame so the helper itself does not appear in the stack trace
    return "".join(stack[:-1])


class AutomationError(Exception):
    """Base exception class for all betting-automation errors"""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        recoverable: bool = True,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.recoverable = recoverable
        self.timestamp: datetime = utc_now()
        self.traceback = _capture_traceback()
        self.original_error = original_error

    def add_context(self, **kwargs: Any) -> "AutomationError":
        """Add additional context to the error"""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback,
        }


class ValidationError(AutomationError):
    """Raised when a bet request fails shape validation"""

    def __init__(
        self, message: str, field: str | None = None, value: Any = None, **kwargs: Any
    ) -> None:
        super().__init__(message, error_code="VALIDATION_ERROR", recoverable=False, **kwargs)
        if field:
            self.add_context(field=field, value=value)


class ConfigurationError(AutomationError):
    """Raised when there are configuration issues"""

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="CONFIG_ERROR", recoverable=False, **kwargs)
        if config_key:
            self.add_context(config_key=config_key)


class ProviderConnectionError(AutomationError):
    """Raised when a backend cannot be reached or login fails"""

    def __init__(self, message: str, provider: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="PROVIDER_CONNECTION_ERROR", **kwargs)
        if provider:
            self.add_context(provider=provider)


class NotConnectedError(AutomationError):
    """Raised when an operation needs a connected backend and there is none"""

    def __init__(self, message: str, provider: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="NOT_CONNECTED", recoverable=False, **kwargs)
        if provider:
            self.add_context(provider=provider)


class ExecutionError(AutomationError):
    """Raised when a bet cannot be executed by a backend"""

    def __init__(self, message: str, provider: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="EXECUTION_ERROR", **kwargs)
        if provider:
            self.add_context(provider=provider)


class ProtocolTimeoutError(AutomationError):
    """Raised when a correlated request or readiness signal is never answered."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        timeout_seconds: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code="TIMEOUT_ERROR", **kwargs)
        if operation is not None:
            self.add_context(
                operation=operation,
                timeout_seconds=timeout_seconds if timeout_seconds is not None else 0.0,
            )


class ProvidersExhaustedError(AutomationError):
    """Raised when retries and failover ran out of backends"""

    def __init__(self, message: str, tried: list[str] | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="PROVIDERS_EXHAUSTED", recoverable=False, **kwargs)
        self.add_context(tried=list(tried or []))


class EngineStateError(AutomationError):
    """Raised when an engine operation is not allowed in the current state"""

    def __init__(self, message: str, state: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="ENGINE_STATE_ERROR", **kwargs)
        if state:
            self.add_context(state=state)


class AutomationNotActiveError(AutomationError):
    """Raised when the manager is asked to bet without an active session"""

    def __init__(self, message: str = "Automation is not active", **kwargs: Any) -> None:
        super().__init__(message, error_code="AUTOMATION_NOT_ACTIVE", **kwargs)


class RiskLimitExceeded(AutomationError):
    """Raised when risk limits are exceeded"""

    def __init__(
        self, message: str, limit_type: str, limit_value: float, current_value: float, **kwargs: Any
    ) -> None:
        super().__init__(message, error_code="RISK_LIMIT_EXCEEDED", recoverable=False, **kwargs)
        self.limit_type = limit_type
        self.add_context(
            limit_type=limit_type,
            limit_value=limit_value,
            current_value=current_value,
        )


# Helper functions
def handle_error(error: Exception, context: dict[str, Any] | None = None) -> AutomationError:
    """Convert any exception to an AutomationError with context"""
    if isinstance(error, AutomationError):
        if context:
            error.add_context(**context)
        return error

    wrapped = AutomationError(
        message=str(error) or error.__class__.__name__,
        error_code=error.__class__.__name__,
        context=context or {},
        original_error=error,
    )
    wrapped.traceback = _capture_traceback()
    return wrapped


def log_error(error: AutomationError, level: int = logging.ERROR) -> None:
    """Log an error with full context"""
    _get_logger().log(level, f"{error.error_code}: {error.message}", error_data=error.to_dict())


__all__ = [
    "AutomationError",
    "ValidationError",
    "ConfigurationError",
    "ProviderConnectionError",
    "NotConnectedError",
    "ExecutionError",
    "ProtocolTimeoutError",
    "ProvidersExhaustedError",
    "EngineStateError",
    "AutomationNotActiveError",
    "RiskLimitExceeded",
    "handle_error",
    "log_error",
]
