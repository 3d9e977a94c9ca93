from __future__ import annotations

from argparse import ArgumentTypeError

import pytest

from betting_automation.cli.options import build_selections, parse_selection
from betting_automation.cli.response import CliErrorCode, CliResponse, format_response
from betting_automation.core.types import SelectionType


def test_parse_selection_normalises_type() -> None:
    assert parse_selection(" Dozen : 2 ") == (SelectionType.DOZEN, "2")


@pytest.mark.parametrize("raw", ["red", "color:", "wheel:red"])
def test_parse_selection_rejects_bad_input(raw: str) -> None:
    with pytest.raises(ArgumentTypeError):
        parse_selection(raw)


def test_build_selections_splits_amount_evenly() -> None:
    selections = build_selections(
        [(SelectionType.COLOR, "red"), (SelectionType.EVEN_ODD, "odd")], 10.0
    )
    assert [s.amount for s in selections] == [5.0, 5.0]


def test_error_response_text_format() -> None:
    response = CliResponse.error_response(
        "check", CliErrorCode.CONNECTION_FAILED, "refused", details={"provider": "web"}
    )
    assert response.exit_code == 1
    assert format_response(response) == "Error [CONNECTION_FAILED]: refused\n  provider: web"


def test_success_response_text_format_lists_warnings() -> None:
    response = CliResponse.success_response("run", data="done").add_warning("careful")
    assert format_response(response) == "Warning: careful\ndone"
