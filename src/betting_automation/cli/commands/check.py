"""``check``: verify credentials against the configured backends."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from typing import Any

from betting_automation.cli.options import add_output_options, add_provider_option
from betting_automation.cli.response import CliErrorCode, CliResponse
from betting_automation.cli.services import build_container
from betting_automation.errors import ConfigurationError


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("check", help="Test the connection with the configured credentials")
    add_provider_option(parser)
    add_output_options(parser)
    parser.set_defaults(handler=execute, command="check")


def execute(args: Namespace) -> CliResponse:
    container = build_container(args)
    try:
        credentials = container.settings.credentials()
    except ConfigurationError as exc:
        return CliResponse.error_response(
            "check", CliErrorCode.CONFIG_INVALID, exc.message, exit_code=2, details=exc.context
        )

    manager = container.manager
    manager.initialize()
    outcome = asyncio.run(manager.test_connection(credentials))

    if not outcome.success:
        return CliResponse.error_response(
            "check", CliErrorCode.CONNECTION_FAILED, outcome.error or "Connection failed"
        )
    return CliResponse.success_response(
        "check", data={"connected": True, "provider": outcome.provider}
    )
