"""
ASGI config for the tutoring chat backend.

This file exposes the ASGI callable as a module-level variable named
`application`. It routes:
- HTTP requests to Django (REST API, health check, schema)
- WebSocket connections to the chat gateway via Django Channels

Uvicorn uses this entry point:
    uvicorn config.asgi:application

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import UserIdentityMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # 1. AllowedHostsOriginValidator - origin must match ALLOWED_HOSTS
        # 2. UserIdentityMiddleware - resolves scope["user_id"] from the handshake
        # 3. URLRouter - routes to the chat consumer
        "websocket": AllowedHostsOriginValidator(
            UserIdentityMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
