from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from farming_magazine.audit.utils import log_action
from farming_magazine.notifications.models import Notification
from farming_magazine.realtime.events.notifications import publish_admin_alert
from farming_magazine.realtime.events.notifications import publish_broadcast
from farming_magazine.users.api.permissions import IsAdminRole

from .serializers import BroadcastSerializer
from .serializers import DeliverySerializer
from .serializers import NotificationCreateSerializer
from .serializers import NotificationSerializer

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

User = get_user_model()


def _coerce_receivers_to_user_ids(receivers: Iterable[Any]) -> set[int]:
    user_ids: set[int] = set()
    for r in receivers:
        if isinstance(r, bool) or r is None:
            continue
        if isinstance(r, int):
            user_ids.add(int(r))
            continue
        if isinstance(r, str) and r.strip().isdigit():
            user_ids.add(int(r.strip()))
            continue
    return user_ids


def _resolve_recipient_ids(data: dict[str, Any]) -> set[int]:
    active = User.objects.filter(is_active=True)
    if "recipient_id" in data:
        return set(
            active.filter(pk=int(data["recipient_id"])).values_list("id", flat=True)
        )
    if "receiver_role" in data:
        return set(
            active.filter(role=data["receiver_role"]).values_list("id", flat=True)
        )

    receivers = data.get("receivers") or []
    labels = [r.strip() for r in receivers if isinstance(r, str) and r.strip()]
    recipient_ids: set[int] = set()
    if any(label.upper() == "ALL" for label in labels):
        recipient_ids.update(active.values_list("id", flat=True))
    roles = [label for label in labels if label in User.Role.values]
    if roles:
        recipient_ids.update(
            active.filter(role__in=roles).values_list("id", flat=True)
        )
    requested = _coerce_receivers_to_user_ids(receivers)
    if requested:
        recipient_ids.update(
            active.filter(pk__in=requested).values_list("id", flat=True)
        )
    return recipient_ids


@extend_schema_view(
    list=extend_schema(tags=["Notifications"]),
    destroy=extend_schema(tags=["Notifications"]),
    create=extend_schema(
        tags=["Notifications"],
        request=NotificationCreateSerializer,
        responses=NotificationSerializer(many=True),
    ),
    mark_read=extend_schema(tags=["Notifications"], request=None, responses=None),
    mark_all_read=extend_schema(tags=["Notifications"], request=None, responses=None),
    broadcast=extend_schema(
        tags=["Notifications"],
        request=BroadcastSerializer,
        responses=DeliverySerializer,
    ),
)
class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Notifications for the authenticated user.

    - list: shows request.user's notifications
    - create: stores notifications for target recipients (admins only); each
      one is pushed to the recipient's open sockets once committed
    - destroy: deletes a notification (recipient only)
    - mark_read / mark_all_read
    - broadcast: ephemeral push to connected clients (admins only)
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)

    def get_permissions(self):
        if self.action in {"create", "broadcast"}:
            return [IsAuthenticated(), IsAdminRole()]
        return [p() for p in self.permission_classes]

    def create(self, request, *args, **kwargs):
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recipient_ids = _resolve_recipient_ids(data)
        if not recipient_ids:
            return Response(
                {"detail": "No recipients resolved from payload."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        with transaction.atomic():
            created: list[Notification] = [
                Notification.objects.create(
                    recipient_id=rid,
                    title=data["title"],
                    message=data["message"],
                    notification_type=data["notification_type"],
                    category=data.get("category", ""),
                    priority=data["priority"],
                    data=data.get("data") or {},
                    related_link=data.get("related_link", ""),
                )
                for rid in sorted(recipient_ids)
            ]

        # Return created notifications (single object for single-recipient payload).
        if len(created) == 1:
            out = NotificationSerializer(created[0], context={"request": request}).data
            return Response(out, status=status.HTTP_201_CREATED)
        out_many = NotificationSerializer(
            created, many=True, context={"request": request}
        ).data
        return Response(out_many, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        self.get_queryset().filter(is_read=False).update(is_read=True)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"])
    def broadcast(self, request):
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payload = {
            "title": data["title"],
            "message": data["message"],
            "priority": data["priority"],
            "data": data["data"],
        }
        if data["audience"] == BroadcastSerializer.AUDIENCE_ADMINS:
            delivered = publish_admin_alert(payload)
        else:
            exclude = None if data["include_self"] else request.user.pk
            delivered = publish_broadcast(payload, exclude_user_id=exclude)

        log_action(
            "notification_broadcast",
            actor=request.user,
            message=f"audience={data['audience']} delivered={delivered}",
            resource="notifications",
            details={"title": data["title"], "delivered": delivered},
        )
        return Response({"delivered": delivered})
