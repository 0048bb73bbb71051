"""
WebSocket identity middleware.

Resolves the connecting user's id from the handshake and stores it in
scope["user_id"] (None when absent or malformed). The consumer refuses
connections without an id.

Identity sources (in order of precedence):
    1. Query string: ws://host/ws/chat/?userId=<id>
    2. Header: x-user-id: <id>

Token validation is handled upstream of this service; the id is trusted as
given.

Usage in config/asgi.py:
    from chat.middleware import UserIdentityMiddleware

    application = ProtocolTypeRouter({
        "websocket": UserIdentityMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware

logger = logging.getLogger(__name__)

QUERY_PARAM = "userId"
HEADER_NAME = b"x-user-id"


def _parse_user_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdigit():
        return None
    return int(raw)


def resolve_user_id(scope: dict) -> int | None:
    """Extract the user id from a WebSocket scope."""
    query = parse_qs(scope.get("query_string", b"").decode("latin-1"))
    values = query.get(QUERY_PARAM)
    if values:
        user_id = _parse_user_id(values[0])
        if user_id is None:
            logger.warning(f"Ignoring malformed {QUERY_PARAM} query parameter: {values[0]!r}")
        return user_id

    for name, value in scope.get("headers", []):
        if name.lower() == HEADER_NAME:
            user_id = _parse_user_id(value.decode("latin-1"))
            if user_id is None:
                logger.warning(f"Ignoring malformed {HEADER_NAME.decode()} header")
            return user_id
    return None


class UserIdentityMiddleware(BaseMiddleware):
    """Populate scope["user_id"] from the handshake query string or headers."""

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        scope["user_id"] = resolve_user_id(scope)
        return await super().__call__(scope, receive, send)
