from django.conf import settings
from django.contrib import admin
from django.contrib.staticfiles.urls import staticfiles_urlpatterns
from django.urls import include
from django.urls import path
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from drf_spectacular.views import SpectacularAPIView
from drf_spectacular.views import SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.views import TokenVerifyView

from farming_magazine.users.api.auth_views import CookieOnlyJWTRefreshView

from .health import health as health_view


# Annotated JWT views for proper schema tag grouping
@extend_schema_view(post=extend_schema(tags=["Authentication"]))
class JWTCreateView(TokenObtainPairView):
    pass


@extend_schema_view(post=extend_schema(tags=["Authentication"]))
class JWTVerifyView(TokenVerifyView):
    pass


# Cookie login/logout/password (dj-rest-auth) plus body-based JWT endpoints.
# The realtime socket takes the access token in its query string, so browser
# clients obtain one from jwt/create/.
auth_urlpatterns = [
    path(
        "",
        include(
            ("farming_magazine.users.api.auth_urls", "dj_rest_auth"),
            namespace="dj_rest_auth_v1",
        ),
    ),
    path("jwt/create/", JWTCreateView.as_view(), name="jwt-create"),
    path("jwt/refresh/", CookieOnlyJWTRefreshView.as_view(), name="jwt-refresh"),
    path("jwt/verify/", JWTVerifyView.as_view(), name="jwt-verify"),
]

urlpatterns = [
    path(settings.ADMIN_URL, admin.site.urls),
    path("health/", health_view, name="health"),
    path("api/v1/", include(("config.api_router", "api"), namespace="api_v1")),
    path("api/v1/auth/", include(auth_urlpatterns)),
    path("api/v1/schema/", SpectacularAPIView.as_view(), name="api-schema-v1"),
    path(
        "api/v1/docs/",
        SpectacularSwaggerView.as_view(url_name="api-schema-v1"),
        name="api-docs-v1",
    ),
]

if settings.DEBUG:
    # uvicorn does not serve static files; admin and swagger assets in dev.
    urlpatterns += staticfiles_urlpatterns()
