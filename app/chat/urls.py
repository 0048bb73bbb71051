"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/unread/                   GET
        /conversations/search/                   GET
        /conversations/stats/                    GET
        /conversations/{id}/                     GET, PATCH
        /conversations/{id}/archive/             POST
        /conversations/{id}/leave/               POST

    Participants:
        /conversations/{id}/participants/            GET, POST
        /conversations/{id}/participants/{user_id}/  DELETE

    Messages:
        /conversations/{id}/messages/            GET, POST
        /conversations/{id}/messages/recent/     GET
        /conversations/{id}/messages/read/       POST
        /conversations/{id}/messages/unread/     GET
        /conversations/{id}/messages/stats/      GET
        /messages/search/                        GET
        /messages/unread-count/                  GET
        /messages/{id}/                          GET, DELETE
        /messages/{id}/read/                     POST

    Presence:
        /presence/online/                        GET
        /presence/online/{user_id}/              GET
        /presence/stats/                         GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    ConversationMessageViewSet,
    ConversationViewSet,
    MessageViewSet,
    OnlineUsersView,
    ParticipantViewSet,
    PresenceStatsView,
    UserOnlineView,
)

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    # Nested routes for participants
    path(
        "conversations/<int:conversation_pk>/participants/",
        ParticipantViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-participant-list",
    ),
    path(
        "conversations/<int:conversation_pk>/participants/<int:user_id>/",
        ParticipantViewSet.as_view({"delete": "destroy"}),
        name="conversation-participant-detail",
    ),
    # Nested routes for messages
    path(
        "conversations/<int:conversation_pk>/messages/",
        ConversationMessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/recent/",
        ConversationMessageViewSet.as_view({"get": "recent"}),
        name="conversation-message-recent",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/read/",
        ConversationMessageViewSet.as_view({"post": "read"}),
        name="conversation-message-read",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/unread/",
        ConversationMessageViewSet.as_view({"get": "unread"}),
        name="conversation-message-unread",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/stats/",
        ConversationMessageViewSet.as_view({"get": "stats"}),
        name="conversation-message-stats",
    ),
    # Messages across conversations
    path(
        "messages/search/",
        MessageViewSet.as_view({"get": "search"}),
        name="message-search",
    ),
    path(
        "messages/unread-count/",
        MessageViewSet.as_view({"get": "unread_count"}),
        name="message-unread-count",
    ),
    path(
        "messages/<int:pk>/",
        MessageViewSet.as_view({"get": "retrieve", "delete": "destroy"}),
        name="message-detail",
    ),
    path(
        "messages/<int:pk>/read/",
        MessageViewSet.as_view({"post": "read"}),
        name="message-read",
    ),
    # Presence endpoints
    path("presence/online/", OnlineUsersView.as_view(), name="presence-online"),
    path(
        "presence/online/<int:user_id>/",
        UserOnlineView.as_view(),
        name="presence-user",
    ),
    path("presence/stats/", PresenceStatsView.as_view(), name="presence-stats"),
]
