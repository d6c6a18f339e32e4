from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.mixins import UpdateModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from farming_magazine.audit.models import AuditLog
from farming_magazine.audit.utils import log_action
from farming_magazine.users.login_security import check_lock
from farming_magazine.users.login_security import unlock_account
from farming_magazine.users.models import User
from farming_magazine.users.utils import get_client_ip
from farming_magazine.users.utils import get_user_agent

from .permissions import IsAdminRole
from .permissions import is_admin_user
from .serializers import LockStatusSerializer
from .serializers import UserSerializer


@extend_schema_view(
    list=extend_schema(tags=["Users"]),
    retrieve=extend_schema(tags=["Users"]),
    partial_update=extend_schema(tags=["Users"]),
    update=extend_schema(tags=["Users"]),
    me=extend_schema(tags=["Users"]),
    lock_status=extend_schema(tags=["Users"], responses=LockStatusSerializer),
    unlock=extend_schema(tags=["Users"], request=None, responses=UserSerializer),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, UpdateModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    queryset = User.objects.all()
    lookup_field = "username"
    pagination_class = None

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        user = self.request.user
        if not getattr(user, "is_authenticated", False):  # pragma: no cover - safety
            return User.objects.none()
        # Admins may list all users; others only themselves
        if is_admin_user(user):
            return User.objects.all()
        return User.objects.filter(pk=user.pk)

    def get_permissions(self):
        if self.action in {"lock_status", "unlock"}:
            return [*super().get_permissions(), IsAdminRole()]
        return super().get_permissions()

    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    @action(detail=True, methods=["get"], url_path="lock-status")
    def lock_status(self, request, username=None):
        user = self.get_object()
        return Response(check_lock(user).as_dict())

    @action(detail=True, methods=["post"])
    def unlock(self, request, username=None):
        user = self.get_object()
        unlock_account(user)
        log_action(
            "account_unlocked",
            actor=request.user,
            message=f"username={user.username}",
            resource="authentication",
            model_name="users.User",
            record_id=user.pk,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            severity=AuditLog.Severity.MEDIUM,
        )
        serializer = UserSerializer(user, context={"request": request})
        return Response(serializer.data)

    def perform_update(self, serializer):  # type: ignore[override]
        instance = serializer.save()
        log_action(
            "user_updated",
            actor=self.request.user,
            message=f"username={instance.username}",
            model_name="users.User",
            record_id=instance.pk,
        )
