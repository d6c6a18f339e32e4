from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models.signals import post_save
from django.db.transaction import on_commit
from django.dispatch import receiver

from farming_magazine.notifications.builders import build_notification
from farming_magazine.notifications.models import Notification
from farming_magazine.realtime.events.notifications import build_alert_payload
from farming_magazine.realtime.events.notifications import publish_admin_alert


@receiver(post_save, sender=get_user_model())
def announce_new_user(sender, instance, created, **kwargs):
    """Tell admins on the live feed that someone signed up."""

    if not created:
        return

    payload = build_alert_payload(
        build_notification(
            Notification.Type.USER_REGISTERED,
            {"username": instance.username},
        )
    )
    on_commit(lambda: publish_admin_alert(payload))
