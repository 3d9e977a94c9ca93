from __future__ import annotations

import json

import pytest

from betting_automation.cli import main

CREDENTIAL_VARS = (
    "BETTING_AUTOMATION_SITE_URL",
    "BETTING_AUTOMATION_USERNAME",
    "BETTING_AUTOMATION_PASSWORD",
    "BETTING_AUTOMATION_PROVIDER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def configured_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BETTING_AUTOMATION_SITE_URL", "https://sandbox.local/roulette")
    monkeypatch.setenv("BETTING_AUTOMATION_USERNAME", "player")
    monkeypatch.setenv("BETTING_AUTOMATION_PASSWORD", "pw")


def test_providers_lists_backends_by_priority(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["providers", "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["success"] is True
    rows = payload["data"]["providers"]
    assert [row["name"] for row in rows] == ["SandboxProvider", "WebAutomation"]
    assert rows[0]["label"] == "Sandbox (Recommended)"
    assert rows[0]["available"] is True


def test_providers_text_output(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "SandboxProvider" in out
    assert out.index("SandboxProvider") < out.index("WebAutomation")


def test_check_without_credentials_is_a_config_error(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["check", "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 2
    assert payload["errors"][0]["code"] == "CONFIG_INVALID"
    assert "BETTING_AUTOMATION_SITE_URL" in payload["errors"][0]["message"]


def test_check_connects_through_sandbox(
    configured_env: None, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["check", "--format", "json", "--provider", "sandbox"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["data"] == {"connected": True, "provider": "SandboxProvider"}


def test_run_places_requested_bets(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(
        [
            "run",
            "--bets",
            "3",
            "--amount",
            "5",
            "--selection",
            "color:red",
            "--selection",
            "number:17",
            "--seed",
            "11",
            "--format",
            "json",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    data = payload["data"]
    assert len(data["results"]) == 3
    assert all(result["success"] for result in data["results"])
    assert data["session"]["total_bets"] == 3
    assert data["session"]["total_wagered"] == 15.0
    assert data["session"]["status"] == "stopped"
    assert data["metrics"]["sessions_today"] == 3


def test_run_is_reproducible_for_a_seed(capsys: pytest.CaptureFixture[str]) -> None:
    main(["run", "--bets", "4", "--seed", "5", "--format", "json"])
    first = json.loads(capsys.readouterr().out)["data"]["results"]
    main(["run", "--bets", "4", "--seed", "5", "--format", "json"])
    second = json.loads(capsys.readouterr().out)["data"]["results"]

    assert [r["winningNumber"] for r in first] == [r["winningNumber"] for r in second]


def test_run_over_max_bet_reports_warning(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["run", "--bets", "2", "--amount", "500", "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["data"]["results"] == []
    assert any("exceeds the maximum allowed" in w for w in payload["warnings"])


def test_malformed_selection_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["run", "--selection", "red"])
    assert exc_info.value.code == 2
