from django.conf import settings
from django.urls import include
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from farming_magazine.notifications.api.views import NotificationViewSet
from farming_magazine.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("notifications", NotificationViewSet, basename="notifications")


app_name = "api"
# Prepend includes to ensure they take precedence over router routes
urlpatterns = [
    path(
        "audit/",
        include(("farming_magazine.audit.api.urls", "audit"), namespace="audit"),
    ),
    path(
        "realtime/",
        include(
            ("farming_magazine.realtime.api.urls", "realtime"), namespace="realtime"
        ),
    ),
    *router.urls,
]
