"""Raw WebSocket transport for the connection registry (Django Channels).

Frames are JSON text. The consumer only authenticates and shuttles frames;
routing decisions live in
:class:`~farming_magazine.realtime.registry.ConnectionRegistry`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from functools import partial
from typing import TYPE_CHECKING
from typing import Any

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.utils.module_loading import import_string

from farming_magazine.realtime.auth import authenticate
from farming_magazine.realtime.auth import extract_token
from farming_magazine.realtime.registry import RegistryClosedError
from farming_magazine.realtime.registry import get_registry
from farming_magazine.realtime.sweeper import ensure_liveness_sweeper

if TYPE_CHECKING:
    from collections.abc import Callable

    from farming_magazine.realtime.registry import Connection

logger = logging.getLogger(__name__)

# 4000-4999 is reserved for applications; mirrors HTTP 408.
LIVENESS_TIMEOUT_CODE = 4408
LIVENESS_TIMEOUT_REASON = "Liveness check failed"

_TEXT = "text"
_PROBE = "probe"
_CLOSE = "close"


class ChannelsTransport:
    """Adapts an ``AsyncWebsocketConsumer`` to the registry's transport API.

    Writes go through an ordered outbox drained by a single writer task, so
    callers on any thread can enqueue without blocking and per-connection
    order is preserved.

    Liveness probes travel through the same outbox but never reach the wire.
    The ASGI server pings the peer at the protocol level and reports a dead
    peer as ``websocket.disconnect``; a probe is acknowledged once the writer
    reaches it on a socket that is still open, so a stalled or closed socket
    misses the beat.
    """

    def __init__(
        self,
        consumer: AsyncWebsocketConsumer,
        loop: asyncio.AbstractEventLoop,
        *,
        on_error: Callable[[], None] | None = None,
    ) -> None:
        self._consumer = consumer
        self._loop = loop
        self._outbox: asyncio.Queue[tuple[str, Any, Any]] = asyncio.Queue()
        self._writer: asyncio.Task[None] | None = None
        self._open = True
        self._on_error = on_error
        self.on_alive: Callable[[], None] | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        self._writer = self._loop.create_task(self._drain())

    async def stop(self) -> None:
        self._open = False
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer

    def send_text(self, text: str) -> None:
        self._enqueue((_TEXT, text, None))

    def probe(self) -> None:
        self._enqueue((_PROBE, None, None))

    def terminate(self) -> None:
        self.close(LIVENESS_TIMEOUT_CODE, LIVENESS_TIMEOUT_REASON)

    def close(self, code: int, reason: str) -> None:
        self._enqueue((_CLOSE, code, reason))
        self._open = False

    def _enqueue(self, item: tuple[str, Any, Any]) -> None:
        if not self._open:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._outbox.put_nowait(item)
        else:
            # Raises RuntimeError once the loop is closed; the registry treats
            # that as a dead transport.
            self._loop.call_soon_threadsafe(self._outbox.put_nowait, item)

    async def _drain(self) -> None:
        while True:
            kind, first, second = await self._outbox.get()
            try:
                if kind == _PROBE:
                    if self._open and self.on_alive is not None:
                        self.on_alive()
                elif kind == _TEXT:
                    await self._consumer.send(text_data=first)
                else:
                    await self._consumer.base_send(
                        {"type": "websocket.close", "code": first, "reason": second}
                    )
                    return
            except Exception:  # noqa: BLE001 - transport errors end this socket only
                logger.warning("Realtime transport write failed", exc_info=True)
                self._open = False
                if self._on_error is not None:
                    self._on_error()
                return


def _event_consumer() -> Callable[[], Any] | None:
    realtime = getattr(settings, "REALTIME", {}) or {}
    dotted = realtime.get("EVENT_CONSUMER")
    if not dotted:
        return None
    return import_string(dotted)


class NotificationConsumer(AsyncWebsocketConsumer):
    """``ws/notifications/`` endpoint."""

    connection: Connection | None = None
    transport: ChannelsTransport | None = None

    async def connect(self):
        registry = get_registry()
        token = extract_token(self.scope)
        identity = await database_sync_to_async(authenticate)(token)
        if identity is None or registry.is_closed:
            # Closing before accept() denies the upgrade (HTTP 403).
            await self.close()
            return

        await self.accept()
        self.transport = ChannelsTransport(
            self,
            asyncio.get_running_loop(),
            on_error=self._drop_connection,
        )
        self.transport.start()
        try:
            self.connection = registry.register(
                self.transport, identity.user_id, identity.role
            )
        except RegistryClosedError:
            await self.close()
            return
        self.transport.on_alive = partial(registry.mark_alive, self.connection)
        ensure_liveness_sweeper(registry)

    async def receive(self, text_data=None, bytes_data=None):
        if self.connection is None:
            return
        raw = text_data if text_data is not None else bytes_data
        get_registry().handle_inbound_message(self.connection, raw)
        await self._process_events()

    async def disconnect(self, code):
        self._drop_connection()
        if self.transport is not None:
            await self.transport.stop()
        await self._process_events()

    def _drop_connection(self) -> None:
        if self.connection is not None:
            get_registry().unregister(self.connection)

    async def _process_events(self) -> None:
        consumer = _event_consumer()
        if consumer is None:
            return
        try:
            await database_sync_to_async(consumer)()
        except Exception:  # noqa: BLE001 - storage trouble must not drop the socket
            logger.exception("Processing realtime events failed")
