"""
Serializers for the chat system.

Read serializers build the enriched DTOs returned by the chat services (and
therefore by both the REST API and the WebSocket gateway). Write serializers
validate REST request bodies before they reach the services.

Serializer Hierarchy:
    ParticipantSerializer: Active membership with user details
    MessageSerializer: Message with sender details and deletion placeholder
    ConversationSummarySerializer: Conversation with counts, preview, members

    ConversationCreateSerializer: Create request
    ConversationUpdateSerializer: Archive toggle and/or subject rename
    ParticipantCreateSerializer: Add participant request
    MessageCreateSerializer: Send message request

User enrichment policy:
    Related users are resolved through authentication.services.UserDirectory.
    A user id that no longer resolves is rendered with the "Unknown user"
    placeholder (empty email) and a warning is logged; one missing user never
    fails the whole response.

Context:
    users: Optional {user_id: UserSummary} map prefetched by the caller
    user_id: Requesting user (ConversationSummarySerializer only)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import serializers

from authentication.services import UserDirectory
from chat.constants import CONVERSATION_CONFIG, MESSAGE_CONFIG
from chat.models import Conversation, Message, MessageType, Participant

if TYPE_CHECKING:
    from authentication.services import UserSummary

logger = logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_user(context: dict, user_id: int | None, purpose: str) -> UserSummary | None:
    """
    Resolve display details for user_id, preferring the prefetched map.

    Returns None (and logs) when the user cannot be found.
    """
    if user_id is None:
        logger.warning(f"No user recorded for {purpose}; using placeholder")
        return None

    users = context.get("users")
    summary = users.get(user_id) if users is not None else None
    if summary is None:
        summary = UserDirectory.lookup(user_id)
    if summary is None:
        logger.warning(f"User {user_id} not found for {purpose}; using placeholder")
    return summary


def build_preview(content: str) -> str:
    """Truncate content to the preview length, adding an ellipsis if cut."""
    limit = CONVERSATION_CONFIG.PREVIEW_LENGTH
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


# =============================================================================
# Read Serializers
# =============================================================================


class ParticipantSerializer(serializers.ModelSerializer):
    """Membership enriched with the participant's name, email and platform role."""

    conversation_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    first_name = serializers.SerializerMethodField()
    last_name = serializers.SerializerMethodField()
    full_name = serializers.SerializerMethodField()
    email = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Participant
        fields = [
            "id",
            "conversation_id",
            "user_id",
            "role",
            "joined_at",
            "is_active",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "user_role",
        ]
        read_only_fields = fields

    def _user(self, obj: Participant) -> UserSummary | None:
        cache = self.context.setdefault("_resolved", {})
        if obj.user_id not in cache:
            cache[obj.user_id] = resolve_user(
                self.context, obj.user_id, f"participant {obj.pk}"
            )
        return cache[obj.user_id]

    def get_first_name(self, obj: Participant) -> str:
        user = self._user(obj)
        return user.first_name if user else MESSAGE_CONFIG.UNKNOWN_USER_NAME

    def get_last_name(self, obj: Participant) -> str:
        user = self._user(obj)
        return user.last_name if user else ""

    def get_full_name(self, obj: Participant) -> str:
        user = self._user(obj)
        return user.full_name if user else MESSAGE_CONFIG.UNKNOWN_USER_NAME

    def get_email(self, obj: Participant) -> str:
        user = self._user(obj)
        return user.email if user else ""

    def get_user_role(self, obj: Participant) -> str | None:
        user = self._user(obj)
        return user.role if user else None


class MessageSerializer(serializers.ModelSerializer):
    """
    Message enriched with sender details.

    - Deleted messages: content is "[Message deleted]"
    - Missing sender: sender_name is "Unknown user"
    """

    conversation_id = serializers.IntegerField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True, allow_null=True)
    sender_name = serializers.SerializerMethodField()
    sender_email = serializers.SerializerMethodField()
    content = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_id",
            "sender_name",
            "sender_email",
            "content",
            "message_type",
            "file_url",
            "sent_at",
            "is_read",
            "is_deleted",
        ]
        read_only_fields = fields

    def _sender(self, obj: Message) -> UserSummary | None:
        cache = self.context.setdefault("_resolved", {})
        key = obj.sender_id
        if key not in cache:
            cache[key] = resolve_user(
                self.context, obj.sender_id, f"sender of message {obj.pk}"
            )
        return cache[key]

    def get_sender_name(self, obj: Message) -> str:
        sender = self._sender(obj)
        return sender.full_name if sender else MESSAGE_CONFIG.UNKNOWN_USER_NAME

    def get_sender_email(self, obj: Message) -> str:
        sender = self._sender(obj)
        return sender.email if sender else ""

    def get_content(self, obj: Message) -> str:
        return obj.get_display_content()


class ConversationSummarySerializer(serializers.ModelSerializer):
    """
    Conversation summary as seen by the requesting user (context["user_id"]).

    Computed fields:
        state: ACTIVE or ARCHIVED
        participants: Active members, enriched
        is_group: More than two active members
        is_support: Subject mentions "support"
        total_messages / unread_messages: Counts (unread = not read, not sent by me)
        last_message_*: Newest message date, content, preview and sender name
        is_current_user_participant: Whether the requester is an active member
    """

    state = serializers.CharField(read_only=True)
    participants = serializers.SerializerMethodField()
    is_group = serializers.SerializerMethodField()
    is_support = serializers.SerializerMethodField()
    total_messages = serializers.SerializerMethodField()
    unread_messages = serializers.SerializerMethodField()
    last_message_date = serializers.SerializerMethodField()
    last_message_content = serializers.SerializerMethodField()
    last_message_preview = serializers.SerializerMethodField()
    last_message_sender_name = serializers.SerializerMethodField()
    is_current_user_participant = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "subject",
            "created_at",
            "is_archived",
            "state",
            "session_id",
            "participants",
            "is_group",
            "is_support",
            "total_messages",
            "unread_messages",
            "last_message_date",
            "last_message_content",
            "last_message_preview",
            "last_message_sender_name",
            "is_current_user_participant",
        ]
        read_only_fields = fields

    # Per-object lookups are memoized so each summary costs a fixed number of queries

    def _memo(self, obj: Conversation, key: str, compute):
        memo = self.context.setdefault("_memo", {})
        slot = (obj.pk, key)
        if slot not in memo:
            memo[slot] = compute()
        return memo[slot]

    def _active_participants(self, obj: Conversation) -> list[Participant]:
        return self._memo(obj, "participants", lambda: list(obj.get_active_participants()))

    def _last_message(self, obj: Conversation) -> Message | None:
        return self._memo(
            obj,
            "last_message",
            lambda: obj.messages.order_by("-sent_at", "-id").first(),
        )

    def get_participants(self, obj: Conversation) -> list[dict]:
        participants = self._active_participants(obj)
        users = UserDirectory.lookup_many(p.user_id for p in participants)
        return ParticipantSerializer(
            participants, many=True, context={"users": users}
        ).data

    def get_is_group(self, obj: Conversation) -> bool:
        return len(self._active_participants(obj)) > CONVERSATION_CONFIG.GROUP_THRESHOLD

    def get_is_support(self, obj: Conversation) -> bool:
        return CONVERSATION_CONFIG.SUPPORT_KEYWORD in (obj.subject or "").lower()

    def get_total_messages(self, obj: Conversation) -> int:
        return obj.messages.count()

    def get_unread_messages(self, obj: Conversation) -> int:
        user_id = self.context.get("user_id")
        return (
            obj.messages.filter(is_read=False)
            .exclude(sender_id=user_id)
            .count()
        )

    def get_last_message_date(self, obj: Conversation):
        message = self._last_message(obj)
        return serializers.DateTimeField().to_representation(message.sent_at) if message else None

    def get_last_message_content(self, obj: Conversation) -> str | None:
        message = self._last_message(obj)
        return message.get_display_content() if message else None

    def get_last_message_preview(self, obj: Conversation) -> str | None:
        message = self._last_message(obj)
        return build_preview(message.get_display_content()) if message else None

    def get_last_message_sender_name(self, obj: Conversation) -> str | None:
        message = self._last_message(obj)
        if message is None:
            return None
        sender = resolve_user(
            self.context, message.sender_id, f"sender of message {message.pk}"
        )
        return sender.full_name if sender else MESSAGE_CONFIG.UNKNOWN_USER_NAME

    def get_is_current_user_participant(self, obj: Conversation) -> bool:
        user_id = self.context.get("user_id")
        return any(p.user_id == user_id for p in self._active_participants(obj))


# =============================================================================
# Write Serializers
# =============================================================================


class ConversationCreateSerializer(serializers.Serializer):
    """Request body for creating a conversation."""

    subject = serializers.CharField(
        max_length=CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH,
        allow_blank=True,
    )
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
    )
    initial_message = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )
    session_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class ConversationUpdateSerializer(serializers.Serializer):
    """Request body for updating a conversation; both fields optional."""

    subject = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH,
    )
    archived = serializers.BooleanField(required=False)


class ParticipantCreateSerializer(serializers.Serializer):
    """Request body for adding a participant."""

    user_id = serializers.IntegerField(min_value=1)


class MessageCreateSerializer(serializers.Serializer):
    """Request body for sending a message."""

    content = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
    )
    message_type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    file_url = serializers.URLField(required=False, allow_blank=True, default="")
