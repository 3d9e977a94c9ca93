"""
Structured logging patterns shared by every component.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Generator
from typing import Any


class StructuredLogger:
    def __init__(self, name: str, component: str | None = None):
        self.logger = logging.getLogger(name)
        self.component = component
        self.name = name

    def _prepare_extra_and_standard_kwargs(
        self, kwargs: dict[str, Any]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        standard_logging_kwargs = {"exc_info": None, "stack_info": False, "stacklevel": 1}

        extracted_kwargs: dict[str, Any] = {}
        extra_kwargs: dict[str, Any] = {}

        for key, value in kwargs.items():
            if key in standard_logging_kwargs:
                extracted_kwargs[key] = value
            else:
                extra_kwargs[key] = value

        if self.component:
            extra_kwargs["component"] = self.component

        return extracted_kwargs, extra_kwargs

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.info(msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.error(msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.warning(msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.debug(msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.critical(msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        self.logger.log(level, msg, *args, extra=extra_kwargs, **extracted_kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        extracted_kwargs, extra_kwargs = self._prepare_extra_and_standard_kwargs(kwargs)
        extracted_kwargs["exc_info"] = True
        self.logger.error(msg, *args, extra=extra_kwargs, **extracted_kwargs)


def get_logger(name: str, component: str | None = None, **kwargs: Any) -> StructuredLogger:
    return StructuredLogger(name, component=component)


def _ensure_structured(logger: Any) -> StructuredLogger:
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.Logger) or hasattr(logger, "name"):
        return StructuredLogger(logger.name)
    return StructuredLogger("unknown")


@contextlib.contextmanager
def log_operation(
    operation: str, logger: Any = None, level: int = logging.INFO, **context: Any
) -> Generator[None, None, None]:
    logger = get_logger("operation") if logger is None else _ensure_structured(logger)

    start_context = {"operation": operation}
    start_context.update(context)

    logger.log(level, f"Started {operation}", **start_context)

    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = (time.perf_counter() - start_time) * 1000
        final_context = start_context.copy()
        final_context["duration_ms"] = f"{duration:.2f}"
        logger.log(level, f"Completed {operation}", **final_context)


def log_bet_event(event: str, table_id: str, logger: Any = None, **kwargs: Any) -> None:
    logger = get_logger("betting") if logger is None else _ensure_structured(logger)

    context: dict[str, Any] = {"operation": "bet_event", "table_id": table_id}
    context.update(kwargs)
    logger.info(event, **context)


def log_error_with_context(
    exc: Exception, operation: str, component: str | None = None, logger: Any = None, **kwargs: Any
) -> None:
    logger = get_logger("error") if logger is None else _ensure_structured(logger)

    context: dict[str, Any] = {"operation": operation, "error_type": type(exc).__name__}
    if component:
        context["component"] = component
    context.update(kwargs)
    logger.error(str(exc), **context)


def log_configuration_change(
    key: str, old: Any, new: Any, component: str | None = None, logger: Any = None
) -> None:
    logger = get_logger("config") if logger is None else _ensure_structured(logger)

    context: dict[str, Any] = {"operation": "config_change"}
    if component:
        context["component"] = component

    logger.info(f"Config change {key}: {old} -> {new}", **context)


__all__ = [
    "get_logger",
    "log_operation",
    "log_bet_event",
    "log_error_with_context",
    "log_configuration_change",
    "StructuredLogger",
]
