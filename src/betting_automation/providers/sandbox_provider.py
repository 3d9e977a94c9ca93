"""
Sandboxed-context backend.

The substrate runs inside a ``SandboxContext`` and is reachable only through
serialized messages. Each outbound command carries a fresh ``requestId``; the
pending table maps that id to the waiting future and its timeout handle. An
entry leaves the table exactly once: when its response arrives, when its timer
fires, or when the adapter tears down.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar

from betting_automation.config.constants import (
    SANDBOX_BET_TIMEOUT,
    SANDBOX_CHANNEL_SIZE,
    SANDBOX_LOGIN_TIMEOUT,
    SANDBOX_READY_TIMEOUT,
)
from betting_automation.core.types import BetRequest, BetResult, Credentials
from betting_automation.errors import (
    ExecutionError,
    ProtocolTimeoutError,
    ProviderConnectionError,
)
from betting_automation.providers.base import BaseBettingProvider
from betting_automation.providers.messaging import (
    Message,
    MessageBus,
    MessageType,
    SandboxContext,
    SandboxProgram,
    decode_message,
)
from betting_automation.utilities.logging_patterns import get_logger
from betting_automation.utilities.time_provider import TimeProvider

logger = get_logger(__name__, component="sandbox_provider")

ProgramFactory = Callable[[Credentials], SandboxProgram]


@dataclass
class _PendingRequest:
    operation: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle


class SandboxProvider(BaseBettingProvider):
    name: ClassVar[str] = "SandboxProvider"
    priority: ClassVar[int] = 1
    kind: ClassVar[str] = "sandbox"

    def __init__(
        self,
        program_factory: ProgramFactory,
        *,
        bus: MessageBus | None = None,
        clock: TimeProvider | None = None,
        ready_timeout: float = SANDBOX_READY_TIMEOUT,
        login_timeout: float = SANDBOX_LOGIN_TIMEOUT,
        bet_timeout: float = SANDBOX_BET_TIMEOUT,
        channel_size: int = SANDBOX_CHANNEL_SIZE,
    ) -> None:
        super().__init__(clock=clock)
        self._program_factory = program_factory
        self._bus = bus or MessageBus()
        self._ready_timeout = ready_timeout
        self._login_timeout = login_timeout
        self._bet_timeout = bet_timeout
        self._channel_size = channel_size
        self._context: SandboxContext | None = None
        self._ready = asyncio.Event()
        self._exited = asyncio.Event()
        self._exit_reason: str | None = None
        self._pending: dict[str, _PendingRequest] = {}
        self.site: str | None = None

    @property
    def pending_request_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    def is_available(self) -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _do_connect(self, credentials: Credentials) -> None:
        await self._teardown()
        context = SandboxContext(
            self._bus, self._program_factory(credentials), channel_size=self._channel_size
        )
        self._context = context
        self._ready = asyncio.Event()
        self._exited = asyncio.Event()
        self._exit_reason = None
        self._bus.add_listener(self._on_message)
        context.on_exit(self._on_context_exit)

        try:
            context.start()
            await self._wait_until_ready()
            outcome = await self._request(
                MessageType.LOGIN, credentials.login_payload(), self._login_timeout
            )
            if isinstance(outcome, dict) and outcome.get("success") is False:
                raise ExecutionError(str(outcome.get("error") or "Login was rejected"))
            if self._context is not context:
                raise ExecutionError("Sandbox context terminated during login")
        except Exception as exc:
            await self._teardown()
            raise ProviderConnectionError(
                f"Sandbox connection failed: {exc}",
                provider=self.name,
                original_error=exc,
            ) from exc

        logger.info("Sandbox ready", provider=self.name, site=self.site, handle=context.handle)

    async def _do_disconnect(self) -> None:
        await self._teardown()

    async def _do_place_bet(self, request: BetRequest) -> BetResult:
        if self._context is None or not self._ready.is_set():
            raise ExecutionError("Sandbox is not connected or not ready")
        data = await self._request(MessageType.PLACE_BET, request.to_payload(), self._bet_timeout)
        if not isinstance(data, dict):
            raise ExecutionError("Sandbox returned a malformed bet result")
        return BetResult.from_payload(data)

    async def _wait_until_ready(self) -> None:
        """Wait for READY, failing early if the sandbox program exits first."""
        ready = asyncio.ensure_future(self._ready.wait())
        exited = asyncio.ensure_future(self._exited.wait())
        try:
            await asyncio.wait(
                {ready, exited}, timeout=self._ready_timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in (ready, exited):
                waiter.cancel()
            await asyncio.gather(ready, exited, return_exceptions=True)

        if self._ready.is_set():
            return
        if self._exited.is_set():
            raise ExecutionError(self._exit_reason or "Sandbox context terminated before it was ready")
        raise ProtocolTimeoutError(
            "Timed out waiting for the sandbox to become ready",
            operation="ready",
            timeout_seconds=self._ready_timeout,
        )

    async def _teardown(self) -> None:
        for request_id, entry in list(self._pending.items()):
            entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(
                    ExecutionError(f"Sandbox disconnected before {entry.operation} completed")
                )
            self._pending.pop(request_id, None)

        self._bus.remove_listener(self._on_message)
        self._ready.clear()
        self.site = None

        context, self._context = self._context, None
        if context is not None:
            await context.destroy()

    # ------------------------------------------------------------------
    # Correlated requests
    # ------------------------------------------------------------------

    def _new_request_id(self) -> str:
        return f"req_{int(self._clock.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    async def _request(self, message_type: MessageType, data: Any, timeout: float) -> Any:
        context = self._context
        if context is None:
            raise ExecutionError("Sandbox context is not available")

        loop = asyncio.get_running_loop()
        request_id = self._new_request_id()
        future: asyncio.Future[Any] = loop.create_future()
        timer = loop.call_later(timeout, self._expire, request_id)
        self._pending[request_id] = _PendingRequest(message_type.value, future, timer)

        try:
            context.post_message({"type": message_type.value, "requestId": request_id, "data": data})
            return await future
        finally:
            entry = self._pending.pop(request_id, None)
            if entry is not None:
                entry.timer.cancel()

    def _expire(self, request_id: str) -> None:
        entry = self._pending.pop(request_id, None)
        if entry is None or entry.future.done():
            return
        timeout = self._bet_timeout if entry.operation == MessageType.PLACE_BET.value else self._login_timeout
        logger.warning(
            "Sandbox request timed out",
            provider=self.name,
            request_id=request_id,
            operation=entry.operation,
        )
        entry.future.set_exception(
            ProtocolTimeoutError(
                f"Timed out waiting for {entry.operation} response",
                operation=entry.operation,
                timeout_seconds=timeout,
            )
        )

    def _settle(self, request_id: Any, data: Any = None, error: str | None = None) -> None:
        entry = self._pending.pop(request_id, None) if isinstance(request_id, str) else None
        if entry is None:
            logger.debug("Ignoring response for unknown request", request_id=request_id)
            return
        entry.timer.cancel()
        if entry.future.done():
            return
        if error:
            entry.future.set_exception(ExecutionError(error, provider=self.name))
        else:
            entry.future.set_result(data)

    # ------------------------------------------------------------------
    # Inbound dispatch
    # ------------------------------------------------------------------

    def _on_message(self, source: str, raw: str) -> None:
        context = self._context
        if context is None or source != context.handle:
            logger.debug("Dropped message from untrusted source", source=source)
            return
        try:
            message = decode_message(raw)
        except ValueError:
            logger.warning("Dropped malformed sandbox message", provider=self.name)
            return
        self._dispatch(message)

    def _dispatch(self, message: Message) -> None:
        message_type = message.get("type")
        request_id = message.get("requestId")

        if message_type == MessageType.READY.value:
            data = message.get("data") or {}
            self.site = data.get("site") if isinstance(data, dict) else None
            self._ready.set()
        elif message_type in (MessageType.LOGIN_RESULT.value, MessageType.BET_RESULT.value):
            self._settle(request_id, message.get("data"), message.get("error"))
        elif message_type == MessageType.ERROR.value:
            self._settle(request_id, error=str(message.get("error") or "Sandbox reported an error"))
        elif message_type == MessageType.LOG.value:
            logger.info("Sandbox log", provider=self.name, sandbox_data=message.get("data"))
        else:
            logger.debug("Ignoring unknown sandbox message", message_type=message_type)

    def _on_context_exit(self, context: SandboxContext, error: BaseException | None) -> None:
        if context is not self._context:
            return
        reason = f"Sandbox context terminated: {error}" if error else "Sandbox context terminated"
        self._exit_reason = reason
        self._exited.set()
        for request_id, entry in list(self._pending.items()):
            entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(ExecutionError(reason, provider=self.name))
            self._pending.pop(request_id, None)
        self._bus.remove_listener(self._on_message)
        self._ready.clear()
        self._context = None
        self._mark_lost(reason)


__all__ = ["SandboxProvider", "ProgramFactory"]
