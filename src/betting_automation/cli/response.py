"""Standard CLI response envelope.

Every command returns a ``CliResponse``; ``--format json`` prints it as a
machine-readable envelope, text mode prints the data or the errors.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from betting_automation.utilities.datetime_helpers import utc_now

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2


class CliErrorCode(str, Enum):
    """Error codes for CLI operations."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    RISK_LIMIT = "RISK_LIMIT"
    OPERATION_FAILED = "OPERATION_FAILED"


@dataclass
class CliError:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class CliResponse:
    """Response envelope shared by all commands.

    Success example:
        {
            "success": true,
            "exit_code": 0,
            "command": "providers",
            "data": {"providers": [...]},
            "errors": [],
            "warnings": [],
            "metadata": {"timestamp": "..."}
        }
    """

    success: bool
    command: str
    data: Any = None
    errors: list[CliError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    exit_code: int = EXIT_OK
    _timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.success and self.exit_code == EXIT_OK:
            self.exit_code = EXIT_RUNTIME_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "exit_code": self.exit_code,
            "command": self.command,
            "data": self.data,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "metadata": {"timestamp": self._timestamp.isoformat()},
        }

    def to_json(self, compact: bool = False) -> str:
        return json.dumps(self.to_dict(), indent=None if compact else 2, default=str)

    def add_warning(self, message: str) -> CliResponse:
        self.warnings.append(message)
        return self

    @classmethod
    def success_response(
        cls, command: str, data: Any = None, warnings: list[str] | None = None
    ) -> CliResponse:
        return cls(success=True, command=command, data=data, warnings=warnings or [])

    @classmethod
    def error_response(
        cls,
        command: str,
        code: CliErrorCode,
        message: str,
        *,
        exit_code: int = EXIT_RUNTIME_ERROR,
        details: dict[str, Any] | None = None,
    ) -> CliResponse:
        return cls(
            success=False,
            command=command,
            errors=[CliError(code=code.value, message=message, details=details or {})],
            exit_code=exit_code,
        )


def format_response(response: CliResponse, output_format: str = "text") -> str:
    if output_format == "json":
        return response.to_json()

    if response.success:
        lines = [f"Warning: {warning}" for warning in response.warnings]
        if response.data is None:
            lines.append("Operation completed successfully.")
        elif isinstance(response.data, str):
            lines.append(response.data)
        else:
            lines.append(json.dumps(response.data, indent=2, default=str))
        return "\n".join(lines)

    lines = []
    for error in response.errors:
        lines.append(f"Error [{error.code}]: {error.message}")
        for key, value in error.details.items():
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


__all__ = [
    "CliError",
    "CliErrorCode",
    "CliResponse",
    "EXIT_CONFIG_ERROR",
    "EXIT_OK",
    "EXIT_RUNTIME_ERROR",
    "format_response",
]
