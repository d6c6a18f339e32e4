"""ASGI lifespan handler for the realtime layer.

Starts the liveness sweep with the server and closes every socket with a
normal-closure frame before the server stops.
"""

from __future__ import annotations

import asyncio
import logging

from farming_magazine.realtime.registry import get_registry
from farming_magazine.realtime.sweeper import ensure_liveness_sweeper

logger = logging.getLogger(__name__)

# Gives the per-connection writers a chance to flush their close frames.
SHUTDOWN_GRACE_SECONDS = 0.5


async def lifespan(scope, receive, send):
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            ensure_liveness_sweeper(get_registry())
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            registry = get_registry()
            had_connections = registry.connection_count > 0
            registry.shutdown()
            if had_connections:
                await asyncio.sleep(SHUTDOWN_GRACE_SECONDS)
            await send({"type": "lifespan.shutdown.complete"})
            return
