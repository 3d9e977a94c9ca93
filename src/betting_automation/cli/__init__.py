"""Command line interface entry point for the betting automation core."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from dotenv import load_dotenv

from betting_automation.utilities.logging_patterns import get_logger

# Preserve host-provided secrets; only fill gaps from .env
load_dotenv()

logger = get_logger(__name__, component="cli")

from betting_automation.cli.commands import check, providers, run  # noqa: E402
from betting_automation.config.settings import get_settings  # noqa: E402
from betting_automation.errors import (  # noqa: E402
    AutomationError,
    ConfigurationError,
    handle_error,
    log_error,
)
from betting_automation.logging import configure_logging  # noqa: E402

from .response import (  # noqa: E402
    EXIT_CONFIG_ERROR,
    EXIT_RUNTIME_ERROR,
    CliErrorCode,
    CliResponse,
    format_response,
)

__all__ = ["main"]


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])
    _configure_logging()

    output_format = getattr(args, "output_format", "text")
    command_name = getattr(args, "command", None) or "unknown"

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.error("No command handler configured.")

    try:
        result = handler(args)
        exit_code = _handle_result(result, output_format)
    except Exception as e:
        exit_code = _handle_exception(e, output_format, command_name)

    return exit_code


def _configure_logging() -> None:
    settings = get_settings()
    configure_logging(
        level=logging.DEBUG if _env_flag("BETTING_AUTOMATION_DEBUG") else settings.log_level,
        log_dir=settings.log_dir,
        json_logs=settings.json_logs,
    )


def _handle_result(result: Any, output_format: str) -> int:
    if isinstance(result, CliResponse):
        print(format_response(result, output_format))
        return result.exit_code
    if isinstance(result, int):
        return result
    return 0


def _handle_exception(error: Exception, output_format: str, command_name: str) -> int:
    """Report an exception that escaped a command handler.

    Configuration problems exit with 2, everything else with 1.
    """
    if isinstance(error, ConfigurationError):
        exit_code, code = EXIT_CONFIG_ERROR, CliErrorCode.CONFIG_INVALID
        logger.error("Command failed: invalid configuration", error=error.message)
    else:
        exit_code, code = EXIT_RUNTIME_ERROR, CliErrorCode.INTERNAL_ERROR
        log_error(handle_error(error, {"command": command_name}))

    message = error.message if isinstance(error, AutomationError) else str(error)
    if output_format == "json":
        response = CliResponse.error_response(
            command=command_name,
            code=code,
            message=message,
            exit_code=exit_code,
            details={"exception_type": type(error).__name__},
        )
        print(response.to_json())
    else:
        print(f"Error: {message}", file=sys.stderr)

    return exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Roulette betting automation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run.register(subparsers)
    check.register(subparsers)
    providers.register(subparsers)

    return parser


def _env_flag(name: str) -> bool:
    value = os.environ.get(name, "")
    return value.strip().lower() in {"1", "true", "yes", "on"}


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
