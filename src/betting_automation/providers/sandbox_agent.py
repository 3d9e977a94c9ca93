"""
Bootstrap program injected into a sandbox context.

The agent announces readiness, then serves ``LOGIN`` and ``PLACE_BET``
commands from the host one at a time, delegating the site work to a
``TableDriver``. Every command is answered with exactly one message carrying
the same ``requestId``: the matching result, or ``ERROR`` when the driver
raised.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from betting_automation.core.types import BetRequest, BetResult, SiteType
from betting_automation.providers.messaging import Message, MessageType, SandboxPort
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="sandbox_agent")


@runtime_checkable
class TableDriver(Protocol):
    """Site-specific automation used from inside the sandbox."""

    def detect_site(self) -> str: ...

    async def login(self, username: str, password: str, site_type: SiteType) -> dict[str, Any]: ...

    async def place_bet(self, request: BetRequest) -> BetResult: ...


class SandboxAgent:
    def __init__(self, driver: TableDriver) -> None:
        self._driver = driver

    async def run(self, port: SandboxPort) -> None:
        site = self._driver.detect_site()
        port.post({"type": MessageType.LOG.value, "data": {"message": "Automation agent loaded"}})
        port.post({"type": MessageType.READY.value, "data": {"site": site}})

        while True:
            message = await port.receive()
            await self._handle(port, message)

    async def _handle(self, port: SandboxPort, message: Message) -> None:
        message_type = message.get("type")
        request_id = message.get("requestId")
        data = message.get("data") or {}

        try:
            if message_type == MessageType.LOGIN.value:
                outcome = await self._driver.login(
                    str(data.get("username", "")),
                    str(data.get("password", "")),
                    SiteType(data.get("siteType", SiteType.OTHER.value)),
                )
                port.post(
                    {
                        "type": MessageType.LOGIN_RESULT.value,
                        "requestId": request_id,
                        "data": outcome,
                    }
                )
            elif message_type == MessageType.PLACE_BET.value:
                result = await self._driver.place_bet(BetRequest.from_payload(data))
                port.post(
                    {
                        "type": MessageType.BET_RESULT.value,
                        "requestId": request_id,
                        "data": result.to_dict(),
                    }
                )
            else:
                port.post(
                    {
                        "type": MessageType.LOG.value,
                        "data": {"message": f"Ignored unknown command {message_type!r}"},
                    }
                )
        except Exception as exc:
            logger.debug("Agent command failed", command=message_type, error=str(exc))
            port.post(
                {
                    "type": MessageType.ERROR.value,
                    "requestId": request_id,
                    "error": str(exc) or type(exc).__name__,
                }
            )


__all__ = ["SandboxAgent", "TableDriver"]
