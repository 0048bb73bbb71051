"""
Chat application configuration.

This app provides the tutoring platform chat with:
- Conversations between students and tutors, optionally tied to a session
- Messages with read tracking and soft deletion
- Presence tracking and realtime delivery over WebSocket
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
