"""Deterministic retry delay helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryDecision:
    """Result of evaluating one failed attempt against the retry budget."""

    attempt: int
    delay_seconds: float
    retries_exhausted: bool


def evaluate_linear_retry(
    *,
    attempt: int,
    max_retries: int,
    base_delay: float,
    max_delay: float | None = None,
) -> RetryDecision:
    """Pure evaluation of a linear retry delay without reading clocks.

    ``attempt`` is the number of failed attempts so far against the current
    backend (1 after the first failure). The delay grows as
    ``base_delay * attempt``; once ``attempt`` reaches ``max_retries`` no delay
    is scheduled and the caller should fail over instead.
    """

    if attempt >= max_retries:
        return RetryDecision(attempt=attempt, delay_seconds=0.0, retries_exhausted=True)

    delay = max(base_delay, 0.0) * max(attempt, 0)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return RetryDecision(attempt=attempt, delay_seconds=float(delay), retries_exhausted=False)


__all__ = [
    "RetryDecision",
    "evaluate_linear_retry",
]
