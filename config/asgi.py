"""
ASGI config for farming_magazine project.

It exposes the ASGI callable as a module-level variable named ``application``.

Run it with uvicorn, which also keeps WebSocket peers honest with
protocol-level pings (a peer that stops answering is disconnected):

    uvicorn config.asgi:application --ws-ping-interval 20 --ws-ping-timeout 20

For more information on this file, see
https://docs.djangoproject.com/en/dev/howto/deployment/asgi/

"""

import os

from django.core.asgi import get_asgi_application

# If DJANGO_SETTINGS_MODULE is unset, select a sensible default based on BUILD_ENV
# Default to local settings for the local dev image, production otherwise.
if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "production").lower()
    default_settings = (
        "config.settings.local"
        if build_env == "local"
        else "config.settings.production"
    )
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", default_settings)

# Initialise Django before importing consumers, which touch the ORM.
django_application = get_asgi_application()

from channels.routing import ProtocolTypeRouter  # noqa: E402
from channels.routing import URLRouter  # noqa: E402

from farming_magazine.realtime.lifespan import lifespan  # noqa: E402
from farming_magazine.realtime.routing import websocket_urlpatterns  # noqa: E402

# Raw WebSocket upgrades on `/ws/notifications/` go to the realtime consumer;
# everything else is plain Django. The lifespan handler starts the liveness
# sweep and closes sockets cleanly on server shutdown.
application = ProtocolTypeRouter(
    {
        "http": django_application,
        "websocket": URLRouter(websocket_urlpatterns),
        "lifespan": lifespan,
    }
)
