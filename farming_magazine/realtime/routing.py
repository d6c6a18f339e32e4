from django.conf import settings
from django.urls import path

from . import consumers

DEFAULT_PATH = "ws/notifications/"


def websocket_path() -> str:
    realtime = getattr(settings, "REALTIME", {}) or {}
    return realtime.get("PATH") or DEFAULT_PATH


websocket_urlpatterns = [
    # React frontend connects with `?token=<access token>`.
    path(websocket_path(), consumers.NotificationConsumer.as_asgi()),
]
