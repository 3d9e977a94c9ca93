"""
Serialized message channel between the host and an isolated sandbox context.

The host never calls into the sandbox directly. It posts JSON text into the
context's bounded inbound queue; the program running inside the context
answers by posting JSON text onto the shared ``MessageBus`` tagged with its
opaque handle. Listeners on the bus decide which handles they trust.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from betting_automation.config.constants import SANDBOX_CHANNEL_SIZE
from betting_automation.errors import ExecutionError
from betting_automation.utilities.logging_patterns import get_logger

logger = get_logger(__name__, component="sandbox_messaging")

Message = dict[str, Any]
BusListener = Callable[[str, str], None]


class MessageType(str, Enum):
    READY = "READY"
    LOGIN = "LOGIN"
    LOGIN_RESULT = "LOGIN_RESULT"
    PLACE_BET = "PLACE_BET"
    BET_RESULT = "BET_RESULT"
    ERROR = "ERROR"
    LOG = "LOG"


def encode_message(message: Message) -> str:
    return json.dumps(message, default=str)


def decode_message(raw: str) -> Message:
    """Parse one wire message; raises ``ValueError`` for anything but a JSON object."""
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Sandbox message must be a JSON object")
    return payload


class MessageBus:
    """Host-side inbox every sandbox context posts to."""

    def __init__(self) -> None:
        self._listeners: list[BusListener] = []

    def add_listener(self, listener: BusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: BusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def post(self, source: str, raw: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(source, raw)
            except Exception:
                logger.exception("Message bus listener failed", source=source)


class SandboxPort:
    """The sandbox-side end of a context: receive host messages, post replies."""

    def __init__(self, context: SandboxContext) -> None:
        self._context = context

    async def receive(self) -> Message:
        while True:
            raw = await self._context._inbound.get()
            try:
                return decode_message(raw)
            except ValueError:
                logger.warning("Sandbox dropped malformed host message", handle=self._context.handle)

    def post(self, message: Message) -> None:
        self._context.bus.post(self._context.handle, encode_message(message))


SandboxProgram = Callable[[SandboxPort], Awaitable[None]]


class SandboxContext:
    """An isolated execution context running one injected program as a task."""

    def __init__(
        self,
        bus: MessageBus,
        program: SandboxProgram,
        *,
        channel_size: int = SANDBOX_CHANNEL_SIZE,
    ) -> None:
        self.bus = bus
        self.handle = f"sandbox-{uuid.uuid4().hex}"
        self._program = program
        self._inbound: asyncio.Queue[str] = asyncio.Queue(maxsize=channel_size)
        self._task: asyncio.Task[None] | None = None
        self._exit_listeners: list[Callable[[SandboxContext, BaseException | None], None]] = []
        self._destroyed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_exit(self, listener: Callable[[SandboxContext, BaseException | None], None]) -> None:
        self._exit_listeners.append(listener)

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Sandbox context already started")
        self._task = asyncio.get_running_loop().create_task(
            self._program(SandboxPort(self)), name=self.handle
        )
        self._task.add_done_callback(self._on_task_done)
        logger.debug("Sandbox context started", handle=self.handle)

    def post_message(self, message: Message) -> None:
        if not self.running:
            raise ExecutionError("Sandbox context is not running")
        try:
            self._inbound.put_nowait(encode_message(message))
        except asyncio.QueueFull as exc:
            raise ExecutionError("Sandbox inbound channel is full") from exc

    async def destroy(self) -> None:
        self._destroyed = True
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Sandbox context destroyed", handle=self.handle)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        error: BaseException | None = None
        if not task.cancelled():
            error = task.exception()
        if self._destroyed:
            return
        if error is not None:
            logger.error("Sandbox program crashed", handle=self.handle, error=str(error))
        else:
            logger.warning("Sandbox program exited", handle=self.handle)
        for listener in list(self._exit_listeners):
            try:
                listener(self, error)
            except Exception:
                logger.exception("Sandbox exit listener failed", handle=self.handle)


__all__ = [
    "MessageType",
    "MessageBus",
    "SandboxContext",
    "SandboxPort",
    "SandboxProgram",
    "encode_message",
    "decode_message",
]
