from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from farming_magazine.notifications.models import Notification

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    """Read serializer for notifications."""

    unread = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = (
            "id",
            "recipient",
            "title",
            "message",
            "notification_type",
            "category",
            "priority",
            "data",
            "is_read",
            "unread",
            "created_at",
            "related_link",
        )
        read_only_fields = (
            "id",
            "recipient",
            "is_read",
            "created_at",
        )

    def get_unread(self, obj: Notification) -> bool:
        return not bool(obj.is_read)


class NotificationCreateSerializer(serializers.Serializer):
    """Create serializer.

    Supports creating one Notification per recipient.

    Accepted targeting forms (exactly one is required):
    - recipient_id: int
    - receiver_role: str (User role, e.g. "editor")
    - receivers: list[ int | str ]
      - int: user id
      - str: "ALL" (every active user) or a role name
    """

    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    notification_type = serializers.ChoiceField(
        choices=Notification.Type.choices,
        required=False,
        default=Notification.Type.OTHER,
    )
    priority = serializers.ChoiceField(
        choices=Notification.Priority.choices,
        required=False,
        default=Notification.Priority.MEDIUM,
    )
    category = serializers.CharField(required=False, allow_blank=True, default="")
    data = serializers.DictField(required=False, default=dict)
    related_link = serializers.CharField(required=False, allow_blank=True, default="")

    # Accept either int or numeric string, and tolerate "" (treated as missing).
    recipient_id = serializers.CharField(required=False, allow_blank=True)
    receiver_role = serializers.CharField(required=False, allow_blank=True)
    receivers = serializers.ListField(child=serializers.JSONField(), required=False)

    def validate_receiver_role(self, value: str) -> str:
        value = value.strip()
        if value and value not in User.Role.values:
            msg = "Unknown role."
            raise serializers.ValidationError(msg)
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        # Normalize empty values so forms can submit every targeting field.
        recipient_id = attrs.get("recipient_id")
        if isinstance(recipient_id, str):
            recipient_id = recipient_id.strip()
            if not recipient_id:
                attrs.pop("recipient_id", None)
            elif recipient_id.isdigit():
                attrs["recipient_id"] = int(recipient_id)
            else:
                msg = "Must be an integer."
                raise serializers.ValidationError({"recipient_id": msg})

        if not attrs.get("receiver_role"):
            attrs.pop("receiver_role", None)

        receivers = attrs.get("receivers")
        if isinstance(receivers, list) and len(receivers) == 0:
            attrs.pop("receivers", None)

        targets = [
            "recipient_id" in attrs,
            "receiver_role" in attrs,
            "receivers" in attrs,
        ]
        if sum(targets) != 1:
            msg = "Provide exactly one of recipient_id, receiver_role, receivers."
            raise serializers.ValidationError(msg)
        return attrs


class BroadcastSerializer(serializers.Serializer):
    """Ephemeral push to connected clients; nothing is stored."""

    AUDIENCE_ALL = "all"
    AUDIENCE_ADMINS = "admins"

    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    audience = serializers.ChoiceField(
        choices=[AUDIENCE_ALL, AUDIENCE_ADMINS], required=False, default=AUDIENCE_ALL
    )
    priority = serializers.ChoiceField(
        choices=Notification.Priority.choices,
        required=False,
        default=Notification.Priority.MEDIUM,
    )
    data = serializers.DictField(required=False, default=dict)
    include_self = serializers.BooleanField(required=False, default=False)


class DeliverySerializer(serializers.Serializer):
    delivered = serializers.IntegerField()
