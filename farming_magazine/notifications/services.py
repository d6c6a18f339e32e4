"""Notification store side of the realtime event channel.

The connection registry never touches the database. Read receipts sent over a
socket are queued as registry events and applied here, outside the event loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from farming_magazine.notifications.models import Notification
from farming_magazine.realtime.registry import EventKind
from farming_magazine.realtime.registry import get_registry

if TYPE_CHECKING:
    from farming_magazine.realtime.registry import ConnectionRegistry
    from farming_magazine.realtime.registry import RegistryEvent

logger = logging.getLogger(__name__)


def mark_read(user_id: int, notification_id) -> int:
    try:
        pk = int(notification_id)
    except (TypeError, ValueError):
        logger.info("Ignoring mark_read with bad id %r", notification_id)
        return 0
    return Notification.objects.filter(
        pk=pk, recipient_id=user_id, is_read=False
    ).update(is_read=True)


def mark_all_read(user_id: int) -> int:
    return Notification.objects.filter(recipient_id=user_id, is_read=False).update(
        is_read=True
    )


def apply_event(event: RegistryEvent) -> int:
    if event.user_id is None:
        return 0
    if event.kind == EventKind.NOTIFICATION_READ:
        return mark_read(event.user_id, event.data.get("notification_id"))
    if event.kind == EventKind.ALL_NOTIFICATIONS_READ:
        return mark_all_read(event.user_id)
    logger.debug("Realtime event %s user=%s %s", event.kind, event.user_id, event.data)
    return 0


def process_realtime_events(registry: ConnectionRegistry | None = None) -> int:
    """Drain the registry's event queue. Returns the number of events handled."""

    events = (registry or get_registry()).drain_events()
    for event in events:
        apply_event(event)
    return len(events)
