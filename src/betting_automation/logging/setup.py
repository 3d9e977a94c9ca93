"""Centralized logging setup for the betting automation core."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from betting_automation.logging.json_formatter import StructuredJSONFormatter

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "betting_automation"


def _env_int(name: str, default: int) -> int:
    raw_value = os.environ.get(name)
    if raw_value is None or not str(raw_value).strip():
        return default
    return int(raw_value)


def configure_logging(
    level: str | int = "INFO",
    log_dir: Path | str | None = None,
    json_logs: bool = False,
) -> None:
    """
    Configure console logging and, when ``log_dir`` is given, rotating files.

    Args:
        level: Level for the package logger
        log_dir: Directory for ``betting_automation.log`` / ``critical_events.log``
        json_logs: Also write JSONL files with correlation context
    """

    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)
    set_package_level(level)

    console_handlers = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
        and type(h).__name__ not in {"LogCaptureHandler", "_LiveLoggingNullHandler"}
    ]
    if not console_handlers:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root.addHandler(console)

    if log_dir is None:
        return

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    max_bytes = _env_int("BETTING_AUTOMATION_LOG_MAX_BYTES", 50 * 1024 * 1024)
    backups = _env_int("BETTING_AUTOMATION_LOG_BACKUP_COUNT", 10)

    existing_targets = {
        getattr(handler, "baseFilename", None)
        for handler in root.handlers
        if hasattr(handler, "baseFilename")
    }

    targets: list[tuple[str, int, logging.Formatter]] = [
        ("betting_automation.log", logging.DEBUG, logging.Formatter(DEFAULT_FORMAT)),
        ("critical_events.log", logging.WARNING, logging.Formatter(DEFAULT_FORMAT)),
    ]
    if json_logs:
        targets.append(
            ("betting_automation.jsonl", logging.DEBUG, StructuredJSONFormatter(sort_keys=True))
        )

    for filename, handler_level, formatter in targets:
        path = str((directory / filename).resolve())
        if path in existing_targets:
            continue
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backups
        )
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def set_package_level(level: str | int) -> None:
    """Apply ``level`` to the package logger only."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved)


__all__ = ["configure_logging", "set_package_level", "DEFAULT_FORMAT"]
