"""
Deterministic roulette table for development, testing, and the CLI demo.

Implements ``TableDriver`` against a seeded European wheel so bets settle
reproducibly without any real betting site.
"""

from __future__ import annotations

import asyncio
import random
from collections import deque
from typing import Any
from urllib.parse import urlparse

from betting_automation.core.types import (
    BetRequest,
    BetResult,
    BetSelection,
    SelectionType,
    SiteType,
    WinningColor,
)
from betting_automation.errors import ExecutionError, ValidationError
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="deterministic_table")

RED_NUMBERS = frozenset({1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36})

# Net odds paid on a winning stake; the stake itself is returned on top
PAYOUT_ODDS: dict[SelectionType, int] = {
    SelectionType.NUMBER: 35,
    SelectionType.DOZEN: 2,
    SelectionType.COLUMN: 2,
    SelectionType.COLOR: 1,
    SelectionType.EVEN_ODD: 1,
    SelectionType.HIGH_LOW: 1,
}


def color_of(number: int) -> WinningColor:
    if number == 0:
        return WinningColor.GREEN
    return WinningColor.RED if number in RED_NUMBERS else WinningColor.BLACK


def selection_wins(selection: BetSelection, number: int) -> bool:
    """Whether ``selection`` is covered by ``number``. Zero loses every outside bet."""
    value = selection.value
    kind = selection.type

    if kind is SelectionType.NUMBER:
        target = _as_int(value, kind, 0, 36)
        return number == target
    if number == 0:
        return False
    if kind is SelectionType.COLOR:
        label = str(value).lower()
        if label not in ("red", "black"):
            raise ValidationError(f"Unknown color {value!r}", field="selections.value", value=value)
        return color_of(number).value == label
    if kind is SelectionType.DOZEN:
        dozen = _as_int(value, kind, 1, 3)
        return (dozen - 1) * 12 < number <= dozen * 12
    if kind is SelectionType.COLUMN:
        column = _as_int(value, kind, 1, 3)
        return number % 3 == column % 3
    if kind is SelectionType.EVEN_ODD:
        label = str(value).lower()
        if label not in ("even", "odd"):
            raise ValidationError(f"Unknown parity {value!r}", field="selections.value", value=value)
        return (number % 2 == 0) == (label == "even")
    if kind is SelectionType.HIGH_LOW:
        label = str(value).lower()
        if label not in ("high", "low"):
            raise ValidationError(f"Unknown half {value!r}", field="selections.value", value=value)
        return number >= 19 if label == "high" else number <= 18
    raise ValidationError(f"Unsupported selection type {kind!r}", field="selections.type")


def _as_int(value: str | int, kind: SelectionType, low: int, high: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{kind.value} bets need a number", field="selections.value", value=value
        ) from exc
    if not low <= parsed <= high:
        raise ValidationError(
            f"{kind.value} value must be between {low} and {high}",
            field="selections.value",
            value=value,
        )
    return parsed


class DeterministicTable:
    """Simulated table with deterministic behavior for testing and development."""

    def __init__(
        self,
        site_url: str = "https://sandbox.local/roulette",
        *,
        seed: int = 7,
        spin_delay: float = 0.0,
    ) -> None:
        self._site_url = site_url
        self._rng = random.Random(seed)
        self._spin_delay = spin_delay
        self._forced_numbers: deque[int] = deque()
        self._failures_pending = 0
        self._bet_counter = 0
        self.logged_in_as: str | None = None

    def queue_outcomes(self, *numbers: int) -> None:
        """Force the next spins to land on ``numbers`` (for test control)."""
        for number in numbers:
            if not 0 <= number <= 36:
                raise ValueError(f"Roulette numbers run from 0 to 36, got {number}")
            self._forced_numbers.append(number)

    def fail_next(self, count: int = 1) -> None:
        """Make the next ``count`` bets raise (for test control)."""
        self._failures_pending += count

    def detect_site(self) -> str:
        return urlparse(self._site_url).hostname or "unknown"

    async def login(self, username: str, password: str, site_type: SiteType) -> dict[str, Any]:
        if not username or not password:
            raise ExecutionError("Login failed: invalid credentials")
        self.logged_in_as = username
        logger.debug("Simulated login", username=username, site_type=site_type.value)
        return {"success": True}

    async def place_bet(self, request: BetRequest) -> BetResult:
        if self.logged_in_as is None:
            raise ExecutionError("Not logged in")
        if self._failures_pending:
            self._failures_pending -= 1
            raise ExecutionError("Table did not accept the bet")

        if self._spin_delay:
            await asyncio.sleep(self._spin_delay)

        number = self._forced_numbers.popleft() if self._forced_numbers else self._rng.randint(0, 36)
        payout = 0.0
        for selection in request.selections:
            if selection_wins(selection, number):
                payout += selection.amount * (PAYOUT_ODDS[selection.type] + 1)

        self._bet_counter += 1
        return BetResult(
            success=True,
            bet_id=f"sim_{self._bet_counter}",
            winning_number=number,
            winning_color=color_of(number),
            payout=payout,
            profit=payout - request.total_amount,
            execution_time=0.0,
        )


__all__ = ["DeterministicTable", "PAYOUT_ODDS", "RED_NUMBERS", "color_of", "selection_wins"]
