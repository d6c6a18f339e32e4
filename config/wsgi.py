"""
WSGI config for farming_magazine project.

Serves the REST API and admin only. The realtime WebSocket endpoint needs the
ASGI application in ``config.asgi``.
"""

import os

from django.core.wsgi import get_wsgi_application

# BUILD_ENV=local selects the local settings; everything else runs production.
if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "production").lower()
    os.environ["DJANGO_SETTINGS_MODULE"] = (
        "config.settings.local"
        if build_env == "local"
        else "config.settings.production"
    )

application = get_wsgi_application()
