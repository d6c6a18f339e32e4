from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from django.conf import settings

if TYPE_CHECKING:
    from farming_magazine.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


def heartbeat_interval() -> float:
    realtime = getattr(settings, "REALTIME", {}) or {}
    return float(realtime.get("HEARTBEAT_INTERVAL", DEFAULT_HEARTBEAT_INTERVAL))


class LivenessSweeper:
    """Runs ``registry.sweep_liveness()`` on a fixed interval.

    The task lives on the event loop that serves the WebSocket consumers, so
    sweeps never race the consumers' own register/unregister calls.
    """

    def __init__(self, registry: ConnectionRegistry, interval: float) -> None:
        self.registry = registry
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="realtime-liveness-sweep")
        logger.info("Liveness sweep started (every %ss)", self.interval)

    def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            # The loop may already be gone at interpreter shutdown.
            with contextlib.suppress(RuntimeError):
                task.cancel()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                terminated = self.registry.sweep_liveness()
            except Exception:  # noqa: BLE001 - a bad sweep must not kill the loop
                logger.exception("Liveness sweep failed")
                continue
            if terminated:
                logger.info("Liveness sweep terminated %s connection(s)", terminated)


def ensure_liveness_sweeper(
    registry: ConnectionRegistry,
    *,
    interval: float | None = None,
) -> LivenessSweeper | None:
    """Start the registry's sweeper on the running loop if it is not running."""

    if registry.is_closed:
        return None
    sweeper = registry.sweeper
    if sweeper is None:
        sweeper = LivenessSweeper(registry, interval or heartbeat_interval())
        registry.sweeper = sweeper
    sweeper.start()
    return sweeper
