"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Realtime gateway; one connection per client, all conversations

Identity:
    The user id is passed as ?userId=<id> or an x-user-id header and is
    resolved by chat.middleware.UserIdentityMiddleware.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/",
        consumers.ChatConsumer.as_asgi(),
    ),
]
