"""``providers``: list registered backends in the order they will be tried."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from typing import Any

from betting_automation.cli.options import add_output_options, add_provider_option
from betting_automation.cli.response import CliResponse
from betting_automation.cli.services import build_container
from betting_automation.orchestration.automation_manager import AutomationManager


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("providers", help="List available backends by priority")
    add_provider_option(parser)
    add_output_options(parser)
    parser.set_defaults(handler=execute, command="providers")


def execute(args: Namespace) -> CliResponse:
    manager = build_container(args).manager
    manager.initialize()
    # Availability probes for in-process backends need a running loop.
    rows = asyncio.run(_collect_rows(manager))

    if args.output_format == "json":
        return CliResponse.success_response("providers", data={"providers": rows})

    lines = [
        f"{row['priority']:>3}  {row['name']:<18} {row['label']}"
        + ("" if row["available"] else "  (unavailable)")
        for row in rows
    ]
    return CliResponse.success_response("providers", data="\n".join(lines))


async def _collect_rows(manager: AutomationManager) -> list[dict[str, Any]]:
    status = {entry["name"]: entry for entry in manager.get_detailed_status()["providers"]}
    return [
        {
            "name": option.value,
            "label": option.label,
            "priority": option.priority,
            "kind": status[option.value]["kind"],
            "available": status[option.value]["available"],
        }
        for option in manager.get_provider_options()
    ]
