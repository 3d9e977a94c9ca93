"""``run``: place a series of bets against the simulated table through the sandbox backend."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from typing import Any

from betting_automation.cli.options import (
    add_output_options,
    build_selections,
    parse_selection,
)
from betting_automation.cli.response import CliErrorCode, CliResponse
from betting_automation.cli.services import DEMO_CREDENTIALS, build_container, has_credentials
from betting_automation.core.events import Notification
from betting_automation.core.types import BetRequest
from betting_automation.errors import AutomationError, RiskLimitExceeded
from betting_automation.orchestration.automation_manager import AutomationManager
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="cli_run")

RISK_NOTIFICATIONS = frozenset({"stop_loss_reached", "take_profit_reached", "session_loss_limit_reached"})


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("run", help="Run a simulated betting session")
    parser.add_argument("--bets", type=int, default=5, help="Number of bets to place")
    parser.add_argument("--amount", type=float, default=10.0, help="Total stake per bet")
    parser.add_argument(
        "--selection",
        dest="selections",
        action="append",
        type=parse_selection,
        help="Selection as type:value, repeatable (default: color:red)",
    )
    parser.add_argument("--table-id", default="sim-roulette-1")
    parser.add_argument("--strategy", default="cli")
    parser.add_argument("--seed", type=int, default=7, help="Seed for the simulated wheel")
    parser.add_argument("--cooldown", type=float, default=0.0, help="Seconds between bets")
    add_output_options(parser)
    parser.set_defaults(handler=execute, command="run")


def execute(args: Namespace) -> CliResponse:
    container = build_container(args, enable_web=False, seed=args.seed)
    credentials = (
        container.settings.credentials() if has_credentials(container.settings) else DEMO_CREDENTIALS
    )
    manager = container.manager
    manager.initialize(cooldown_between=args.cooldown, provider="sandbox")
    return asyncio.run(_run_session(manager, credentials, args))


async def _run_session(manager: AutomationManager, credentials: Any, args: Namespace) -> CliResponse:
    notices: list[str] = []

    def _collect(notification: Notification) -> None:
        if notification.name in RISK_NOTIFICATIONS and notification.name not in notices:
            notices.append(notification.name)

    manager.notifications.subscribe(_collect)
    selections = build_selections(args.selections or [parse_selection("color:red")], args.amount)
    results = []

    try:
        await manager.start_automation(credentials)
        for _ in range(args.bets):
            if not manager.is_active():
                break
            request = BetRequest(
                table_id=args.table_id,
                selections=selections,
                total_amount=args.amount,
                strategy=args.strategy,
                confidence=1.0,
            )
            try:
                result = await manager.place_bet(request)
            except RiskLimitExceeded as exc:
                notices.append(exc.message)
                break
            results.append(result.to_dict())
    except AutomationError as exc:
        logger.error("Simulated session failed", error=exc.message)
        return CliResponse.error_response("run", CliErrorCode.OPERATION_FAILED, exc.message)
    finally:
        await manager.stop_automation()
        session = manager.get_current_session()
        metrics = manager.get_metrics()
        await manager.dispose()

    data = {
        "results": results,
        "session": session.to_dict() if session else None,
        "metrics": metrics.to_dict() if metrics else None,
    }
    response = CliResponse.success_response("run", data=data)
    for notice in notices:
        response.add_warning(notice)
    return response
