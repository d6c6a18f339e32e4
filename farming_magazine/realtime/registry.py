"""Process-wide registry of live realtime connections.

One user may hold several sockets at once (tabs, devices), so connections are
tracked as ``user_id -> set[Connection]``. The registry is transport-agnostic:
anything implementing :class:`Transport` can be registered. The Channels
consumer in :mod:`farming_magazine.realtime.consumers` is the production
transport; tests use in-memory fakes.

Delivery helpers (``send_to_user``, ``send_to_admins``, ``broadcast``) are
synchronous and never wait on socket I/O, so they are safe to call from views,
signal receivers and Celery tasks running on other threads. The connection map
is guarded by a lock for that reason.

Registry events (connect, disconnect, mark-read requests) are published on
``registry.events``, a thread-safe queue drained by the notification store.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

if TYPE_CHECKING:
    from collections.abc import Callable

    from farming_magazine.realtime.sweeper import LivenessSweeper

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"

NORMAL_CLOSURE = 1000
SHUTDOWN_REASON = "Server shutting down"


class MessageType:
    """Values of the ``type`` field on realtime frames."""

    # inbound
    PING = "ping"
    PONG = "pong"
    MARK_READ = "mark_read"
    MARK_ALL_READ = "mark_all_read"
    SUBSCRIBE_ADMIN = "subscribe_admin"

    # outbound
    CONNECTION_CONFIRMED = "connection_confirmed"
    NOTIFICATION = "notification"
    ADMIN_NOTIFICATION = "admin_notification"
    BROADCAST = "broadcast"
    ADMIN_SUBSCRIPTION_CONFIRMED = "admin_subscription_confirmed"


class EventKind:
    USER_CONNECTED = "user_connected"
    USER_DISCONNECTED = "user_disconnected"
    NOTIFICATION_READ = "notification_read"
    ALL_NOTIFICATIONS_READ = "all_notifications_read"


class RegistryClosedError(RuntimeError):
    """Raised when registering a connection after ``shutdown()``."""


class Transport(Protocol):
    """What the registry needs from a socket."""

    @property
    def is_open(self) -> bool: ...

    def send_text(self, text: str) -> None: ...

    def probe(self) -> None:
        """Check the peer without sending an application frame.

        A healthy transport acknowledges through ``registry.mark_alive``.
        """

    def terminate(self) -> None: ...

    def close(self, code: int, reason: str) -> None: ...


@dataclass(eq=False)
class Connection:
    transport: Transport
    user_id: int
    role: str
    is_admin_subscribed: bool = False
    is_alive: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class RegistryEvent:
    kind: str
    user_id: int | None
    data: dict[str, Any] = field(default_factory=dict)


def _now_iso() -> str:
    return timezone.now().isoformat()


def encode_frame(message_type: str, payload: dict[str, Any] | None = None) -> str:
    """Serialize an outbound frame.

    ``type`` and ``timestamp`` are server-controlled and always win over keys
    of the same name in ``payload``.
    """

    frame = {**(payload or {}), "type": message_type, "timestamp": _now_iso()}
    return json.dumps(frame, cls=DjangoJSONEncoder)


class ConnectionRegistry:
    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clients: dict[int, set[Connection]] = {}
        self._lock = threading.RLock()
        self._connection_count = 0
        self._clock = clock
        self._started_at = clock()
        self._closed = False
        self.events: queue.SimpleQueue[RegistryEvent] = queue.SimpleQueue()
        self.sweeper: LivenessSweeper | None = None
        self._handlers: dict[str, Callable[[Connection, dict[str, Any]], None]] = {
            MessageType.PING: self._on_ping,
            MessageType.PONG: self._on_pong,
            MessageType.MARK_READ: self._on_mark_read,
            MessageType.MARK_ALL_READ: self._on_mark_all_read,
            MessageType.SUBSCRIBE_ADMIN: self._on_subscribe_admin,
        }

    # Introspection ---------------------------------------------------------
    @property
    def connection_count(self) -> int:
        return self._connection_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    def connections_for(self, user_id: int) -> list[Connection]:
        with self._lock:
            return list(self._clients.get(user_id, ()))

    def user_ids(self) -> list[int]:
        with self._lock:
            return list(self._clients)

    def _snapshot(self) -> list[Connection]:
        with self._lock:
            return [conn for conns in self._clients.values() for conn in conns]

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            admin_connections = sum(
                1 for conns in self._clients.values() for c in conns if c.is_admin
            )
            return {
                "totalConnections": self._connection_count,
                "uniqueUsers": len(self._clients),
                "adminConnections": admin_connections,
                "uptimeSeconds": int(self._clock() - self._started_at),
            }

    # Lifecycle -------------------------------------------------------------
    def register(self, transport: Transport, user_id: int, role: str) -> Connection:
        """Track a freshly authenticated socket and confirm it to the client."""

        connection = Connection(transport=transport, user_id=user_id, role=role)
        with self._lock:
            if self._closed:
                msg = "registry is shut down"
                raise RegistryClosedError(msg)
            self._clients.setdefault(user_id, set()).add(connection)
            self._connection_count += 1
            total = self._connection_count

        logger.info(
            "Realtime connected: user=%s role=%s total=%s", user_id, role, total
        )
        self._write(
            connection,
            encode_frame(
                MessageType.CONNECTION_CONFIRMED,
                {"message": "Real-time notifications connected"},
            ),
        )
        self._publish(
            EventKind.USER_CONNECTED,
            user_id,
            role=role,
            connection_count=total,
        )
        return connection

    def unregister(self, connection: Connection) -> bool:
        """Forget a connection. Returns False if it was already gone."""

        with self._lock:
            conns = self._clients.get(connection.user_id)
            if conns is None or connection not in conns:
                return False
            conns.discard(connection)
            if not conns:
                del self._clients[connection.user_id]
            self._connection_count -= 1
            total = self._connection_count

        logger.info(
            "Realtime disconnected: user=%s total=%s", connection.user_id, total
        )
        self._publish(
            EventKind.USER_DISCONNECTED,
            connection.user_id,
            connection_count=total,
        )
        return True

    def mark_alive(self, connection: Connection) -> None:
        connection.is_alive = True

    def sweep_liveness(self) -> int:
        """Terminate connections that missed the previous probe, probe the rest.

        A connection that stops answering survives one sweep (the one that
        probes it) and is terminated on the next. Probes never put a frame on
        the wire; the transport acknowledges through :meth:`mark_alive`.
        Returns the number of connections terminated.
        """

        terminated = 0
        for connection in self._snapshot():
            if not connection.is_alive:
                logger.info(
                    "Terminating unresponsive realtime connection: user=%s",
                    connection.user_id,
                )
                try:
                    connection.transport.terminate()
                except (RuntimeError, OSError):
                    logger.debug("Terminate failed on a dead transport", exc_info=True)
                self.unregister(connection)
                terminated += 1
                continue
            connection.is_alive = False
            try:
                connection.transport.probe()
            except (RuntimeError, OSError):
                logger.warning(
                    "Liveness probe failed: user=%s", connection.user_id, exc_info=True
                )
                self.unregister(connection)
        return terminated

    def shutdown(self) -> None:
        """Close every connection normally and stop accepting new ones."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.info("Shutting down realtime registry")

        if self.sweeper is not None:
            self.sweeper.stop()

        for connection in self._snapshot():
            if connection.transport.is_open:
                try:
                    connection.transport.close(NORMAL_CLOSURE, SHUTDOWN_REASON)
                except (RuntimeError, OSError):
                    logger.debug("Close failed during shutdown", exc_info=True)
            self.unregister(connection)

    # Inbound ---------------------------------------------------------------
    def handle_inbound_message(
        self,
        connection: Connection,
        raw: str | bytes | dict[str, Any],
    ) -> None:
        if isinstance(raw, dict):
            message: Any = raw
        else:
            try:
                message = json.loads(raw)
            except (TypeError, ValueError):
                logger.warning(
                    "Invalid realtime message from user %s", connection.user_id
                )
                return
        if not isinstance(message, dict):
            logger.warning("Invalid realtime message from user %s", connection.user_id)
            return

        # Any well-formed frame proves the peer is still there.
        self.mark_alive(connection)

        kind = message.get("type")
        handler = self._handlers.get(kind) if isinstance(kind, str) else None
        if handler is None:
            logger.info("Unknown realtime message type: %r", kind)
            return
        handler(connection, message)

    def _on_ping(self, connection: Connection, message: dict[str, Any]) -> None:
        self._write(connection, encode_frame(MessageType.PONG))

    def _on_pong(self, connection: Connection, message: dict[str, Any]) -> None:
        # Liveness flag already refreshed by handle_inbound_message.
        return

    def _on_mark_read(self, connection: Connection, message: dict[str, Any]) -> None:
        notification_id = message.get("notificationId")
        if notification_id in (None, ""):
            logger.info(
                "mark_read without notificationId from user %s", connection.user_id
            )
            return
        self._publish(
            EventKind.NOTIFICATION_READ,
            connection.user_id,
            notification_id=notification_id,
        )

    def _on_mark_all_read(
        self, connection: Connection, message: dict[str, Any]
    ) -> None:
        self._publish(EventKind.ALL_NOTIFICATIONS_READ, connection.user_id)

    def _on_subscribe_admin(
        self, connection: Connection, message: dict[str, Any]
    ) -> None:
        if not connection.is_admin:
            logger.info(
                "Ignoring admin subscription from non-admin user %s",
                connection.user_id,
            )
            return
        connection.is_admin_subscribed = True
        self._write(
            connection,
            encode_frame(
                MessageType.ADMIN_SUBSCRIPTION_CONFIRMED,
                {"message": "Subscribed to admin notifications"},
            ),
        )

    # Outbound --------------------------------------------------------------
    def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        targets = self.connections_for(user_id)
        if not targets:
            return 0
        text = encode_frame(MessageType.NOTIFICATION, payload)
        return self._write_many(targets, text)

    def send_to_admins(self, payload: dict[str, Any]) -> int:
        targets = [
            conn
            for conn in self._snapshot()
            if conn.is_admin and conn.is_admin_subscribed
        ]
        if not targets:
            return 0
        return self._write_many(
            targets, encode_frame(MessageType.ADMIN_NOTIFICATION, payload)
        )

    def broadcast(
        self,
        payload: dict[str, Any],
        exclude_user_id: int | None = None,
    ) -> int:
        targets = [
            conn for conn in self._snapshot() if conn.user_id != exclude_user_id
        ]
        if not targets:
            return 0
        return self._write_many(targets, encode_frame(MessageType.BROADCAST, payload))

    def _write_many(self, connections: list[Connection], text: str) -> int:
        return sum(1 for conn in connections if self._write(conn, text))

    def _write(self, connection: Connection, text: str) -> bool:
        if not connection.transport.is_open:
            return False
        try:
            connection.transport.send_text(text)
        except (RuntimeError, OSError):
            logger.warning(
                "Realtime send failed: user=%s", connection.user_id, exc_info=True
            )
            self.unregister(connection)
            return False
        return True

    # Events ----------------------------------------------------------------
    def _publish(self, kind: str, user_id: int | None, **data: Any) -> None:
        self.events.put(RegistryEvent(kind=kind, user_id=user_id, data=data))

    def drain_events(self) -> list[RegistryEvent]:
        drained: list[RegistryEvent] = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except queue.Empty:
                return drained


_registry = ConnectionRegistry()


def get_registry() -> ConnectionRegistry:
    """Return the process-wide registry used by consumers and publishers."""

    return _registry
