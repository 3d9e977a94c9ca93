from __future__ import annotations

import pytest

from betting_automation.core.types import BetSelection, SelectionType, SiteType, WinningColor
from betting_automation.errors import ExecutionError, ValidationError
from betting_automation.providers.deterministic_table import (
    DeterministicTable,
    color_of,
    selection_wins,
)
from tests.factories import make_request


@pytest.mark.parametrize(
    ("kind", "value", "number", "expected"),
    [
        (SelectionType.NUMBER, 17, 17, True),
        (SelectionType.NUMBER, "0", 0, True),
        (SelectionType.COLOR, "red", 32, True),
        (SelectionType.COLOR, "black", 32, False),
        (SelectionType.DOZEN, 2, 13, True),
        (SelectionType.DOZEN, 2, 25, False),
        (SelectionType.COLUMN, 1, 34, True),
        (SelectionType.COLUMN, 3, 36, True),
        (SelectionType.EVEN_ODD, "even", 8, True),
        (SelectionType.HIGH_LOW, "low", 18, True),
        (SelectionType.HIGH_LOW, "high", 18, False),
    ],
)
def test_selection_coverage(kind: SelectionType, value: object, number: int, expected: bool) -> None:
    assert selection_wins(BetSelection(kind, value, 1.0), number) is expected


@pytest.mark.parametrize(
    "selection",
    [
        BetSelection(SelectionType.COLOR, "red", 1.0),
        BetSelection(SelectionType.EVEN_ODD, "even", 1.0),
        BetSelection(SelectionType.HIGH_LOW, "low", 1.0),
        BetSelection(SelectionType.DOZEN, 1, 1.0),
    ],
)
def test_zero_loses_outside_bets(selection: BetSelection) -> None:
    assert selection_wins(selection, 0) is False


@pytest.mark.parametrize(
    "selection",
    [
        BetSelection(SelectionType.COLOR, "purple", 1.0),
        BetSelection(SelectionType.NUMBER, 37, 1.0),
        BetSelection(SelectionType.DOZEN, "first", 1.0),
    ],
)
def test_invalid_selection_values_raise(selection: BetSelection) -> None:
    with pytest.raises(ValidationError):
        selection_wins(selection, 5)


def test_color_of_wheel_numbers() -> None:
    assert color_of(0) is WinningColor.GREEN
    assert color_of(1) is WinningColor.RED
    assert color_of(2) is WinningColor.BLACK


@pytest.mark.asyncio
async def test_winning_straight_up_pays_thirty_five_to_one() -> None:
    table = DeterministicTable()
    await table.login("player", "pw", SiteType.OTHER)
    table.queue_outcomes(17)

    result = await table.place_bet(
        make_request(10.0, [BetSelection(SelectionType.NUMBER, 17, 10.0)])
    )

    assert result.success is True
    assert result.winning_number == 17
    assert result.payout == 360.0
    assert result.profit == 350.0
    assert result.bet_id == "sim_1"


@pytest.mark.asyncio
async def test_split_stake_settles_each_selection() -> None:
    table = DeterministicTable()
    await table.login("player", "pw", SiteType.OTHER)
    table.queue_outcomes(32)
    request = make_request(
        20.0,
        [
            BetSelection(SelectionType.COLOR, "red", 10.0),
            BetSelection(SelectionType.COLOR, "black", 10.0),
        ],
    )

    result = await table.place_bet(request)

    assert result.payout == 20.0
    assert result.profit == 0.0


@pytest.mark.asyncio
async def test_same_seed_gives_same_spins() -> None:
    first, second = DeterministicTable(seed=3), DeterministicTable(seed=3)
    for table in (first, second):
        await table.login("player", "pw", SiteType.OTHER)

    spins_a = [(await first.place_bet(make_request())).winning_number for _ in range(5)]
    spins_b = [(await second.place_bet(make_request())).winning_number for _ in range(5)]

    assert spins_a == spins_b


@pytest.mark.asyncio
async def test_login_rejects_empty_credentials() -> None:
    with pytest.raises(ExecutionError, match="invalid credentials"):
        await DeterministicTable().login("", "", SiteType.OTHER)


@pytest.mark.asyncio
async def test_bets_require_login_and_honour_fail_next() -> None:
    table = DeterministicTable()
    with pytest.raises(ExecutionError, match="Not logged in"):
        await table.place_bet(make_request())

    await table.login("player", "pw", SiteType.OTHER)
    table.fail_next()
    with pytest.raises(ExecutionError, match="did not accept"):
        await table.place_bet(make_request())
    assert (await table.place_bet(make_request())).success is True


def test_detect_site_returns_hostname() -> None:
    assert DeterministicTable("https://casino.example/live/roulette").detect_site() == "casino.example"


def test_queue_outcomes_rejects_off_wheel_numbers() -> None:
    with pytest.raises(ValueError):
        DeterministicTable().queue_outcomes(37)
