"""
Chat system models.

This module defines the persistent data for the tutoring chat:

Models:
    Conversation: Named thread, optionally linked to a tutoring session
    Participant: A user's (possibly historical) membership in a conversation
    Message: Individual message within a conversation

Design Decisions:
    - Conversations are never deleted; they move between ACTIVE and ARCHIVED
    - Participant rows are kept when a user leaves (is_active=False); joining
      again creates a new row, so at most one active row exists per pair
    - Messages are soft deleted; the row and its read state persist
    - read flag only ever moves from False to True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel

from chat.constants import CONVERSATION_CONFIG, MESSAGE_CONFIG

if TYPE_CHECKING:
    from django.db.models import QuerySet


class ConversationState(models.TextChoices):
    """Lifecycle state derived from the archived flag."""

    ACTIVE = "ACTIVE", "Active"
    ARCHIVED = "ARCHIVED", "Archived"


class MessageType(models.TextChoices):
    """Kind of message content."""

    TEXT = "text", "Text"
    FILE = "file", "File"
    IMAGE = "image", "Image"
    SYSTEM = "system", "System"


class Conversation(BaseModel):
    """
    A named chat thread between tutoring platform users.

    Fields:
        subject: Conversation title (non-empty)
        is_archived: ARCHIVED when True, ACTIVE otherwise
        session_id: Optional reference to the tutoring session it belongs to
        created_by: User who created the conversation
        last_message_at: Send time of the newest message (for sorting)

    State machine:
        ACTIVE ⇄ ARCHIVED, both transitions explicit; no deletion state.
    """

    subject = models.CharField(
        max_length=CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH,
        help_text="Conversation subject, shown as its title",
    )
    is_archived = models.BooleanField(
        default=False,
        help_text="Whether the conversation has been archived",
    )
    session_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Tutoring session this conversation is attached to",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created the conversation",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Send time of the most recent message",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["is_archived", "-last_message_at"],
                name="chat_conv_archived_recent_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.pk}: {self.subject})"

    @property
    def state(self) -> str:
        return ConversationState.ARCHIVED if self.is_archived else ConversationState.ACTIVE

    @property
    def last_activity_at(self):
        """Last message time, else creation time; used for list ordering."""
        return self.last_message_at or self.created_at

    def get_active_participants(self) -> QuerySet[Participant]:
        return self.participants.filter(is_active=True).order_by("joined_at", "id")

    def has_active_participant(self, user_id: int) -> bool:
        return self.participants.filter(user_id=user_id, is_active=True).exists()


class Participant(BaseModel):
    """
    Membership of a user in a conversation.

    Fields:
        conversation: The conversation
        user: The member
        role: Free-form role tag (default "PARTICIPANT")
        joined_at: When the membership started
        is_active: False once the user left or was removed
        left_at: When the membership ended

    Constraints:
        - UniqueConstraint(conversation, user) WHERE is_active:
          at most one active membership per pair; history rows are kept.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this membership belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="Participating user",
    )
    role = models.CharField(
        max_length=30,
        default=CONVERSATION_CONFIG.DEFAULT_ROLE,
        help_text="Role tag of the participant",
    )
    joined_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the user joined the conversation",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the membership is current",
    )
    left_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the user left or was removed",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at"]
        indexes = [
            models.Index(
                fields=["user", "is_active"],
                name="chat_part_user_active_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                condition=Q(is_active=True),
                name="unique_active_participant",
            ),
        ]

    def __str__(self) -> str:
        return f"Participant(user={self.user_id}, conversation={self.conversation_id})"

    def deactivate(self) -> None:
        """End the membership, keeping the row as history."""
        self.is_active = False
        self.left_at = timezone.now()
        self.save(update_fields=["is_active", "left_at", "updated_at"])


class Message(SoftDeleteMixin, BaseModel):
    """
    A message posted to a conversation.

    Fields:
        conversation: Owning conversation
        sender: Author (nulled if the user record is later removed)
        content: Message text (required for text messages)
        message_type: text, file, image or system
        file_url: Location of the attachment for file/image messages
        sent_at: Send timestamp, assigned by the server
        is_read: Read flag, transitions False → True only

    Soft delete:
        soft_delete() keeps the row, clears the attachment and the API shows
        "[Message deleted]" instead of the content.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        help_text="User who sent the message",
    )
    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message",
    )
    file_url = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Attachment location for file and image messages",
    )
    sent_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the message was sent",
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Whether a recipient has read the message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["sent_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "-sent_at"],
                name="chat_msg_conv_sent_idx",
            ),
            models.Index(
                fields=["conversation", "is_read"],
                name="chat_msg_conv_read_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message({self.pk} in conversation {self.conversation_id})"

    def get_display_content(self) -> str:
        if self.is_deleted:
            return MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return self.content

    def on_soft_delete(self) -> None:
        self.file_url = ""

    def soft_delete_fields(self) -> list[str]:
        return ["file_url"]
