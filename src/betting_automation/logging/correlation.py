"""Correlation ID management for tracing one bet across engine, provider and sandbox logs."""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

domain_context_var: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "domain_context", default={}
)


def get_correlation_id() -> str:
    """Get the current correlation ID from the context."""
    return correlation_id_var.get("")


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_domain_context() -> dict[str, Any]:
    return domain_context_var.get({})


@contextmanager
def correlation_context(correlation_id: str | None = None, **domain_fields: Any) -> Iterator[str]:
    """Set the correlation ID and domain fields for the duration of the block.

    Yields the active correlation ID.
    """
    active_id = correlation_id or generate_correlation_id()
    token_correlation = correlation_id_var.set(active_id)
    token_domain = domain_context_var.set({**get_domain_context(), **domain_fields})

    try:
        yield active_id
    finally:
        correlation_id_var.reset(token_correlation)
        domain_context_var.reset(token_domain)


def get_log_context() -> dict[str, Any]:
    """Get the complete log context including correlation ID and domain fields."""
    context: dict[str, Any] = {}

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    domain_context = get_domain_context()
    if domain_context:
        context.update(domain_context)

    return context


__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_log_context",
]
