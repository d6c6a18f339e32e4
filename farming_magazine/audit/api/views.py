from __future__ import annotations

from typing import TYPE_CHECKING

from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from farming_magazine.audit.api.serializers import AuditLogSerializer
from farming_magazine.audit.models import AuditLog
from farming_magazine.users.api.permissions import IsAdminRole

if TYPE_CHECKING:
    from django.db.models import QuerySet


class RecentAuditView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        tags=["Audit"],
        parameters=[
            OpenApiParameter("limit", int, description="1-50, default 5"),
            OpenApiParameter("severity", str, enum=AuditLog.Severity.values),
            OpenApiParameter("resource", str),
        ],
        responses=AuditLogSerializer(many=True),
    )
    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", "5"))
        except (TypeError, ValueError):
            limit = 5
        limit = max(1, min(limit, 50))

        qs: QuerySet[AuditLog] = AuditLog.objects.select_related("actor").all()
        severity = request.query_params.get("severity")
        if severity in AuditLog.Severity.values:
            qs = qs.filter(severity=severity)
        resource = request.query_params.get("resource")
        if resource:
            qs = qs.filter(resource=resource)

        rows = list(qs[:limit])
        data = AuditLogSerializer(rows, many=True).data
        return Response({"results": data, "limit": limit})
