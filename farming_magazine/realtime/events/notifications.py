from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:  # import for type checking only
    from farming_magazine.notifications.models import Notification
from farming_magazine.realtime.registry import get_registry


def build_notification_payload(notification: Notification) -> dict[str, Any]:
    # `type` on the wire is the frame kind; the domain type travels separately.
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "notificationType": notification.notification_type,
        "category": notification.category,
        "priority": notification.priority,
        "data": notification.data,
        "link": notification.related_link,
        "isRead": notification.is_read,
        "createdAt": notification.created_at,
    }


def build_alert_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Wire payload for an unsaved notification (see ``build_notification``)."""

    return {
        "title": fields["title"],
        "message": fields["message"],
        "notificationType": fields["notification_type"],
        "category": fields.get("category", ""),
        "priority": fields.get("priority", ""),
        "data": fields.get("data", {}),
    }


def publish_notification_created(notification: Notification) -> int:
    """Push a newly created Notification to the recipient's open sockets."""

    payload = build_notification_payload(notification)
    return get_registry().send_to_user(notification.recipient_id, payload)


def publish_admin_alert(payload: dict[str, Any]) -> int:
    """Push an ephemeral alert to admins subscribed to the admin feed."""

    return get_registry().send_to_admins(payload)


def publish_broadcast(
    payload: dict[str, Any],
    exclude_user_id: int | None = None,
) -> int:
    return get_registry().broadcast(payload, exclude_user_id=exclude_user_id)
