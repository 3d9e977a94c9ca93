"""Test doubles and builders shared across the suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from betting_automation.core.types import (
    BetRequest,
    BetResult,
    BetSelection,
    Credentials,
    SelectionType,
)
from betting_automation.providers.base import BaseBettingProvider
from betting_automation.utilities.time_provider import FakeClock

Outcome = BetResult | Exception | Callable[["ScriptedProvider"], BetResult]


class ScriptedProvider(BaseBettingProvider):
    """Backend whose availability, connection and bet outcomes are set up front.

    ``outcomes`` is consumed one entry per bet; once empty every bet wins
    ``default_profit``.
    """

    def __init__(
        self,
        name: str,
        priority: int,
        *,
        kind: str = "other",
        available: bool = True,
        connect_error: Exception | None = None,
        outcomes: Iterable[Outcome] = (),
        default_profit: float = 10.0,
        clock: FakeClock | None = None,
    ) -> None:
        self.name = name
        self.priority = priority
        self.kind = kind
        super().__init__(clock=clock)
        self.available = available
        self.connect_error = connect_error
        self.outcomes: list[Outcome] = list(outcomes)
        self.default_profit = default_profit
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.bets: list[BetRequest] = []
        self.gate: asyncio.Event | None = None
        self.connect_gate: asyncio.Event | None = None
        self.seen_events: list[str] = []
        self.add_listener(lambda event: self.seen_events.append(event.kind))

    def is_available(self) -> bool:
        return self.available

    async def _do_connect(self, credentials: Credentials) -> None:
        self.connect_calls += 1
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error

    async def _do_disconnect(self) -> None:
        self.disconnect_calls += 1

    async def _do_place_bet(self, request: BetRequest) -> BetResult:
        self.bets.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if not self.outcomes:
            return win(request.total_amount, self.default_profit)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(self)
        return outcome

    def drop(self, reason: str = "connection dropped") -> None:
        self._mark_lost(reason)


def win(stake: float, profit: float) -> BetResult:
    return BetResult(
        success=True,
        bet_id="bet",
        winning_number=7,
        payout=stake + profit,
        profit=profit,
        execution_time=0.0,
    )


def loss(stake: float) -> BetResult:
    return BetResult(
        success=True, bet_id="bet", winning_number=0, payout=0.0, profit=-stake, execution_time=0.0
    )


def failed(message: str = "table rejected the bet") -> BetResult:
    return BetResult.failure(message)


def make_request(
    amount: float = 10.0,
    selections: Iterable[BetSelection] | None = None,
    *,
    table_id: str = "table-1",
    strategy: str = "martingale",
) -> BetRequest:
    if selections is None:
        selections = [BetSelection(type=SelectionType.COLOR, value="red", amount=amount)]
    return BetRequest(
        table_id=table_id,
        selections=list(selections),
        total_amount=amount,
        strategy=strategy,
        confidence=0.8,
    )


