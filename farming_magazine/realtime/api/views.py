from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import inline_serializer
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from farming_magazine.realtime.registry import get_registry
from farming_magazine.users.api.permissions import IsAdminRole


class RealtimeStatsView(APIView):
    """Live connection counters for the admin dashboard."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        tags=["Realtime"],
        responses=inline_serializer(
            name="RealtimeStats",
            fields={
                "totalConnections": serializers.IntegerField(),
                "uniqueUsers": serializers.IntegerField(),
                "adminConnections": serializers.IntegerField(),
                "uptimeSeconds": serializers.IntegerField(),
            },
        ),
    )
    def get(self, request):
        return Response(get_registry().get_stats())
