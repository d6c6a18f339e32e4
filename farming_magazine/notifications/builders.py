"""Notification templates for site events.

``build_notification`` returns the fields shared by a stored
:class:`~farming_magazine.notifications.models.Notification` and an ephemeral
realtime payload, so callers can either persist it per recipient or push it
straight to the admin feed.
"""

from __future__ import annotations

from typing import Any

from farming_magazine.notifications.models import Notification

Type = Notification.Type
Priority = Notification.Priority


def _templates(data: dict[str, Any]) -> dict[str, dict[str, str]]:
    return {
        Type.USER_REGISTERED: {
            "title": "New User Registration",
            "message": f"New user {data.get('username', '')} has registered",
            "category": "user",
            "priority": Priority.MEDIUM,
        },
        Type.ARTICLE_PUBLISHED: {
            "title": "New Article Published",
            "message": (
                f'Article "{data.get("title", "")}" by {data.get("author", "")} '
                "has been published"
            ),
            "category": "article",
            "priority": Priority.HIGH,
        },
        Type.COMMENT_ADDED: {
            "title": "New Comment",
            "message": f'New comment on "{data.get("articleTitle", "")}"',
            "category": "interaction",
            "priority": Priority.LOW,
        },
        Type.NEWSLETTER_SENT: {
            "title": "Newsletter Sent",
            "message": (
                f'Newsletter "{data.get("subject", "")}" sent to '
                f"{data.get('recipientCount', 0)} subscribers"
            ),
            "category": "newsletter",
            "priority": Priority.MEDIUM,
        },
        Type.SYSTEM_UPDATE: {
            "title": "System Update",
            "message": str(data.get("message", "")),
            "category": "system",
            "priority": Priority.HIGH,
        },
        Type.ADMIN_ALERT: {
            "title": "Admin Alert",
            "message": str(data.get("message", "")),
            "category": "alert",
            "priority": Priority.CRITICAL,
        },
    }


def build_notification(notification_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Render a templated notification.

    Raises:
        ValueError: for a type without a template.
    """
    template = _templates(data).get(notification_type)
    if template is None:
        msg = f"No notification template for {notification_type!r}"
        raise ValueError(msg)
    return {
        "notification_type": str(notification_type),
        "title": template["title"],
        "message": template["message"],
        "category": template["category"],
        "priority": str(template["priority"]),
        "data": dict(data),
    }


def create_notification(
    recipient_id: int,
    notification_type: str,
    data: dict[str, Any],
    *,
    related_link: str = "",
) -> Notification:
    """Persist a templated notification; the post_save hook pushes it live."""
    fields = build_notification(notification_type, data)
    return Notification.objects.create(
        recipient_id=recipient_id,
        related_link=related_link,
        **fields,
    )
