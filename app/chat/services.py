"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on conversations, participants, and messages.

Services:
    ConversationService: Conversation lifecycle (create, read, list, update, search, stats)
    ParticipantService: Membership (access check, add, remove, leave, list)
    MessageService: Message operations (send, read, paginate, mark read, delete, search)

Design Principles:
    - Services are stateless (use class methods) and work on ids
    - Expected failures return ServiceResult.failure() with one of the
      VALIDATION_ERROR / ACCESS_DENIED / NOT_FOUND codes
    - Unexpected failures raise exceptions
    - Successful results carry enriched DTOs (see chat.serializers), ready
      for the REST API and the WebSocket gateway alike

Partial failure:
    create_conversation() inserts each participant in its own transaction.
    A failing insert does not roll back the conversation or the participants
    already stored; it is logged and reported back as a PARTIAL_FAILURE.

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_conversation(
        subject="Algebra help",
        participant_ids=[tutor.id],
        creator_id=student.id,
    )
    if result.success:
        conversation_id = result.data["id"]

    result = MessageService.send_message(conversation_id, student.id, "Hi!")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError
from django.db.models import Exists, OuterRef
from django.utils import timezone

from authentication.services import UserDirectory
from core.services import BaseService, ServiceResult

from chat.constants import CONVERSATION_CONFIG, ERROR_CODES, MESSAGE_CONFIG
from chat.models import Conversation, Message, MessageType, Participant
from chat.presence import presence_registry
from chat.serializers import (
    ConversationSummarySerializer,
    MessageSerializer,
    ParticipantSerializer,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from django.db.models import QuerySet


def _access_denied(what: str = "conversation") -> ServiceResult:
    return ServiceResult.failure(
        f"Access denied to this {what}",
        error_code=ERROR_CODES.ACCESS_DENIED,
    )


def _not_found(what: str, identifier) -> ServiceResult:
    return ServiceResult.failure(
        f"{what.capitalize()} {identifier} not found",
        error_code=ERROR_CODES.NOT_FOUND,
    )


def _invalid(message: str, field: str | None = None) -> ServiceResult:
    return ServiceResult.failure(
        message,
        error_code=ERROR_CODES.VALIDATION,
        errors={field: [message]} if field else None,
    )


# =============================================================================
# ParticipantService
# =============================================================================


class ParticipantService(BaseService):
    """
    Service for conversation membership.

    Membership changes are mirrored into the presence registry so that a
    connected user stops (or starts) receiving a conversation's events
    without reconnecting.

    Methods:
        is_active_participant: Access predicate used by every guarded operation
        get_active_membership: The active row for (conversation, user), if any
        get_user_conversation_ids: Ids of conversations the user is active in
        add_participant: Add a user (idempotent)
        remove_participant: Deactivate another user's membership
        leave_conversation: Deactivate the caller's own membership
        get_conversation_participants: Active members, enriched
    """

    @classmethod
    def is_active_participant(cls, conversation_id: int, user_id: int) -> bool:
        return Participant.objects.filter(
            conversation_id=conversation_id,
            user_id=user_id,
            is_active=True,
        ).exists()

    @classmethod
    def get_active_membership(cls, conversation_id: int, user_id: int) -> Participant | None:
        return Participant.objects.filter(
            conversation_id=conversation_id,
            user_id=user_id,
            is_active=True,
        ).first()

    @classmethod
    def get_user_conversation_ids(cls, user_id: int) -> list[int]:
        return list(
            Participant.objects.filter(user_id=user_id, is_active=True)
            .values_list("conversation_id", flat=True)
            .distinct()
        )

    @classmethod
    def ensure_participant(
        cls,
        conversation: Conversation,
        user_id: int,
        role: str = CONVERSATION_CONFIG.DEFAULT_ROLE,
    ) -> tuple[Participant, bool]:
        """
        Return the active membership of user_id, creating it if absent.

        Runs in its own transaction (a savepoint when nested) so a failure
        only affects this participant. If a concurrent request creates the
        membership between the lookup and the insert, the unique active
        constraint rejects ours and the winner's row is returned.

        Returns:
            (participant, created)
        """
        with cls.atomic():
            existing = cls.get_active_membership(conversation.id, user_id)
            if existing:
                return existing, False
            try:
                with cls.atomic():
                    participant = Participant.objects.create(
                        conversation=conversation,
                        user_id=user_id,
                        role=role,
                    )
            except IntegrityError:
                existing = cls.get_active_membership(conversation.id, user_id)
                if existing is None:
                    raise
                cls.get_logger().info(
                    f"User {user_id} was added to conversation {conversation.id} "
                    f"concurrently; using the existing membership"
                )
                return existing, False
        return participant, True

    @classmethod
    def add_participant(
        cls,
        conversation_id: int,
        user_id_to_add: int,
        requester_id: int,
    ) -> ServiceResult[dict]:
        """
        Add a user to a conversation.

        Idempotent: if the user is already an active member, the existing
        membership is returned instead of an error.

        Error codes:
            NOT_FOUND: Conversation or user to add does not exist
            ACCESS_DENIED: Requester is not an active participant
        """
        conversation = Conversation.objects.filter(id=conversation_id).first()
        if conversation is None:
            return _not_found("conversation", conversation_id)

        if not cls.is_active_participant(conversation_id, requester_id):
            return _access_denied()

        if not UserDirectory.user_exists(user_id_to_add):
            return _not_found("user", user_id_to_add)

        participant, created = cls.ensure_participant(conversation, user_id_to_add)
        if created:
            cls.get_logger().info(
                f"User {requester_id} added user {user_id_to_add} "
                f"to conversation {conversation_id}"
            )
        # Offline users get their memberships loaded when they connect
        if presence_registry.is_user_online(user_id_to_add):
            presence_registry.join_conversation(user_id_to_add, conversation_id)
        return ServiceResult.success(ParticipantSerializer(participant).data)

    @classmethod
    def remove_participant(
        cls,
        conversation_id: int,
        user_id_to_remove: int,
        requester_id: int,
    ) -> ServiceResult[None]:
        """
        Remove a user from a conversation (membership row is kept, inactive).

        Error codes:
            ACCESS_DENIED: Requester is not an active participant
            NOT_FOUND: Target user is not an active participant
        """
        if not cls.is_active_participant(conversation_id, requester_id):
            return _access_denied()

        participant = cls.get_active_membership(conversation_id, user_id_to_remove)
        if participant is None:
            return _not_found("participant", user_id_to_remove)

        participant.deactivate()
        presence_registry.leave_conversation(user_id_to_remove, conversation_id)
        cls.get_logger().info(
            f"User {requester_id} removed user {user_id_to_remove} "
            f"from conversation {conversation_id}"
        )
        return ServiceResult.success(None)

    @classmethod
    def leave_conversation(cls, conversation_id: int, user_id: int) -> ServiceResult[None]:
        """
        Leave a conversation.

        Error codes:
            ACCESS_DENIED: User is not an active participant
        """
        participant = cls.get_active_membership(conversation_id, user_id)
        if participant is None:
            return _access_denied()

        participant.deactivate()
        presence_registry.leave_conversation(user_id, conversation_id)
        cls.get_logger().info(f"User {user_id} left conversation {conversation_id}")
        return ServiceResult.success(None)

    @classmethod
    def get_conversation_participants(
        cls, conversation_id: int, user_id: int
    ) -> ServiceResult[list[dict]]:
        """Active members of the conversation, enriched with user details."""
        if not cls.is_active_participant(conversation_id, user_id):
            return _access_denied()

        participants = list(
            Participant.objects.filter(
                conversation_id=conversation_id, is_active=True
            ).order_by("joined_at", "id")
        )
        users = UserDirectory.lookup_many(p.user_id for p in participants)
        data = ParticipantSerializer(
            participants, many=True, context={"users": users}
        ).data
        return ServiceResult.success(list(data))


# =============================================================================
# ConversationService
# =============================================================================


class ConversationService(BaseService):
    """
    Service for conversation lifecycle operations.

    Methods:
        create_conversation: Create with participants and optional first message
        get_conversation: Access-checked summary
        find_by_session: Summary of the conversation linked to a tutoring session
        list_user_conversations: User's conversations, most recent activity first
        list_unread_conversations: Conversations with messages unread by the user
        update_conversation: Archive toggle and/or subject rename
        archive_conversation: Shortcut for archiving
        search_conversations: Subject search over the user's conversations
        get_conversation_statistics: Totals for the user
        build_summary / build_summaries: Enriched DTOs
    """

    @classmethod
    def build_summary(cls, conversation: Conversation, user_id: int) -> dict:
        return dict(
            ConversationSummarySerializer(conversation, context={"user_id": user_id}).data
        )

    @classmethod
    def build_summaries(
        cls, conversations: Iterable[Conversation], user_id: int
    ) -> list[dict]:
        ordered = sorted(
            conversations,
            key=lambda c: (c.last_activity_at, c.pk),
            reverse=True,
        )
        return list(
            ConversationSummarySerializer(
                ordered, many=True, context={"user_id": user_id}
            ).data
        )

    @classmethod
    def _user_conversations(cls, user_id: int) -> QuerySet[Conversation]:
        return Conversation.objects.filter(
            participants__user_id=user_id,
            participants__is_active=True,
        ).distinct()

    @classmethod
    def create_conversation(
        cls,
        subject: str,
        participant_ids: list[int],
        creator_id: int,
        initial_message: str | None = None,
        session_id: int | None = None,
    ) -> ServiceResult[dict]:
        """
        Create a conversation.

        Steps:
            1. Validate subject and participant list, and that every id
               (creator included) resolves to a user
            2. Persist the conversation
            3. Insert one membership per distinct id, creator included;
               each insert is independent
            4. Send the optional initial message as the creator

        Returns:
            ServiceResult with the creator's conversation summary

        Error codes:
            VALIDATION_ERROR: Blank subject, empty participant list, unknown users
            PARTIAL_FAILURE: Conversation exists but some members were not added
        """
        validation = cls.validate_required(
            subject=subject, participant_ids=participant_ids
        )
        if validation:
            return validation

        subject = subject.strip()
        if len(subject) > CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH:
            return _invalid(
                f"Subject cannot exceed {CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH} characters",
                "subject",
            )

        missing = UserDirectory.missing_user_ids([*participant_ids, creator_id])
        if missing:
            return _invalid(
                f"Unknown user ids: {', '.join(str(i) for i in missing)}",
                "participant_ids",
            )

        conversation = Conversation.objects.create(
            subject=subject,
            session_id=session_id,
            created_by_id=creator_id,
        )

        member_ids = list(dict.fromkeys(participant_ids))
        if creator_id not in member_ids:
            member_ids.append(creator_id)

        failed: list[int] = []
        for member_id in member_ids:
            try:
                participant, _ = ParticipantService.ensure_participant(
                    conversation, member_id
                )
            except DatabaseError as exc:
                cls.get_logger().error(
                    f"Failed to add participant {member_id} to conversation "
                    f"{conversation.id}: {exc}"
                )
                failed.append(member_id)
                continue
            cls.get_logger().debug(
                f"Added participant {participant.user_id} "
                f"to conversation {conversation.id}"
            )

        if failed:
            cls.get_logger().warning(
                f"Conversation {conversation.id} created without participants {failed}"
            )
            return ServiceResult.failure(
                f"Conversation {conversation.id} was created but some participants "
                f"could not be added",
                error_code="PARTIAL_FAILURE",
                errors={
                    "participant_ids": [str(i) for i in failed],
                    "conversation_id": [str(conversation.id)],
                },
            )

        if initial_message and initial_message.strip():
            sent = MessageService.send_message(
                conversation.id, creator_id, initial_message
            )
            if not sent.success:
                cls.get_logger().warning(
                    f"Initial message for conversation {conversation.id} "
                    f"was not sent: {sent.error}"
                )

        cls.get_logger().info(
            f"User {creator_id} created conversation {conversation.id} "
            f"with {len(member_ids)} participants"
        )
        conversation.refresh_from_db()
        return ServiceResult.success(cls.build_summary(conversation, creator_id))

    @classmethod
    def get_conversation(cls, conversation_id: int, user_id: int) -> ServiceResult[dict]:
        """
        Error codes:
            NOT_FOUND: Conversation does not exist
            ACCESS_DENIED: User is not an active participant
        """
        conversation = Conversation.objects.filter(id=conversation_id).first()
        if conversation is None:
            return _not_found("conversation", conversation_id)
        if not ParticipantService.is_active_participant(conversation_id, user_id):
            return _access_denied()
        return ServiceResult.success(cls.build_summary(conversation, user_id))

    @classmethod
    def find_by_session(cls, session_id: int, user_id: int) -> ServiceResult[dict]:
        conversation = (
            Conversation.objects.filter(session_id=session_id).order_by("created_at").first()
        )
        if conversation is None:
            return _not_found("conversation for session", session_id)
        return cls.get_conversation(conversation.id, user_id)

    @classmethod
    def list_user_conversations(
        cls, user_id: int, include_archived: bool = False
    ) -> ServiceResult[list[dict]]:
        """
        Conversations the user actively participates in, sorted by last
        message time (creation time when empty), newest first.
        """
        conversations = cls._user_conversations(user_id)
        if not include_archived:
            conversations = conversations.filter(is_archived=False)
        return ServiceResult.success(cls.build_summaries(conversations, user_id))

    @classmethod
    def list_unread_conversations(cls, user_id: int) -> ServiceResult[list[dict]]:
        """Active conversations holding at least one message unread by the user."""
        unread = Message.objects.filter(
            conversation=OuterRef("pk"),
            is_read=False,
        ).exclude(sender_id=user_id)
        conversations = cls._user_conversations(user_id).filter(
            Exists(unread), is_archived=False
        )
        return ServiceResult.success(cls.build_summaries(conversations, user_id))

    @classmethod
    def update_conversation(
        cls,
        conversation_id: int,
        user_id: int,
        subject: str | None = None,
        archived: bool | None = None,
    ) -> ServiceResult[dict]:
        """
        Apply an update; each part is optional and only applied when given.

        Error codes:
            NOT_FOUND: Conversation does not exist
            ACCESS_DENIED: User is not an active participant
            VALIDATION_ERROR: Subject given but blank or too long
        """
        conversation = Conversation.objects.filter(id=conversation_id).first()
        if conversation is None:
            return _not_found("conversation", conversation_id)
        if not ParticipantService.is_active_participant(conversation_id, user_id):
            return _access_denied()

        update_fields = []
        if subject is not None:
            subject = subject.strip()
            if not subject:
                return _invalid("Subject cannot be blank", "subject")
            if len(subject) > CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH:
                return _invalid(
                    f"Subject cannot exceed {CONVERSATION_CONFIG.MAX_SUBJECT_LENGTH} characters",
                    "subject",
                )
            conversation.subject = subject
            update_fields.append("subject")

        if archived is not None:
            conversation.is_archived = archived
            update_fields.append("is_archived")

        if update_fields:
            conversation.save(update_fields=[*update_fields, "updated_at"])
            cls.get_logger().info(
                f"User {user_id} updated {', '.join(update_fields)} "
                f"of conversation {conversation_id}"
            )

        return ServiceResult.success(cls.build_summary(conversation, user_id))

    @classmethod
    def archive_conversation(cls, conversation_id: int, user_id: int) -> ServiceResult[dict]:
        return cls.update_conversation(conversation_id, user_id, archived=True)

    @classmethod
    def search_conversations(cls, user_id: int, term: str | None) -> ServiceResult[list[dict]]:
        """
        Subject substring search (case-insensitive) over the user's conversations.

        A blank term falls back to the regular (non-archived) listing.
        """
        if not term or not term.strip():
            return cls.list_user_conversations(user_id)

        conversations = cls._user_conversations(user_id).filter(
            subject__icontains=term.strip()
        )
        return ServiceResult.success(cls.build_summaries(conversations, user_id))

    @classmethod
    def get_conversation_statistics(cls, user_id: int) -> ServiceResult[dict]:
        conversations = cls._user_conversations(user_id)
        unread = Message.objects.filter(
            conversation=OuterRef("pk"),
            is_read=False,
        ).exclude(sender_id=user_id)

        total = conversations.count()
        archived = conversations.filter(is_archived=True).count()
        return ServiceResult.success(
            {
                "total_conversations": total,
                "active_conversations": total - archived,
                "archived_conversations": archived,
                "unread_conversations": conversations.filter(
                    Exists(unread), is_archived=False
                ).count(),
            }
        )


# =============================================================================
# MessageService
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Post a message as an active participant
        get_message / get_last_message: Single message lookups
        get_messages: Page of messages (newest page first, each page ascending)
        get_recent_messages: Last N messages, ascending
        get_messages_since: Messages sent at or after a point in time
        get_unread_messages / count_unread / count_total_unread: Unread tracking
        mark_message_as_read / mark_all_as_read: Read receipts
        delete_message: Sender-only soft delete
        search_messages: Content search over the user's conversations
        get_message_statistics: Per-conversation counts
    """

    @classmethod
    def serialize(cls, messages: Iterable[Message]) -> list[dict]:
        messages = list(messages)
        users = UserDirectory.lookup_many(
            m.sender_id for m in messages if m.sender_id is not None
        )
        return list(MessageSerializer(messages, many=True, context={"users": users}).data)

    @classmethod
    def serialize_one(cls, message: Message) -> dict:
        return cls.serialize([message])[0]

    @classmethod
    def _guard(cls, conversation_id: int, user_id: int) -> ServiceResult | None:
        """Return a failure unless the user is an active participant."""
        if not Conversation.objects.filter(id=conversation_id).exists():
            return _not_found("conversation", conversation_id)
        if not ParticipantService.is_active_participant(conversation_id, user_id):
            return _access_denied()
        return None

    @classmethod
    def _unread_for(cls, user_id: int) -> QuerySet[Message]:
        return Message.objects.filter(is_read=False).exclude(sender_id=user_id)

    @classmethod
    def send_message(
        cls,
        conversation_id: int,
        sender_id: int,
        content: str | None,
        message_type: str = MessageType.TEXT,
        file_url: str = "",
    ) -> ServiceResult[dict]:
        """
        Send a message to a conversation.

        The message is stored unread with the server's current time.

        Error codes:
            NOT_FOUND: Conversation does not exist
            ACCESS_DENIED: Sender is not an active participant (checked first,
                so a non-participant never gets past this point)
            VALIDATION_ERROR: Unknown kind, empty text content, content too long,
                file/image message without content or attachment
        """
        denied = cls._guard(conversation_id, sender_id)
        if denied:
            return denied

        if message_type not in MessageType.values:
            return _invalid(f"Unsupported message type: {message_type}", "message_type")

        content = (content or "").strip()
        file_url = (file_url or "").strip()
        if message_type == MessageType.TEXT and not content:
            return _invalid("Message content cannot be empty", "content")
        if message_type in (MessageType.FILE, MessageType.IMAGE) and not (content or file_url):
            return _invalid("File messages need content or a file URL", "file_url")
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return _invalid(
                f"Message content cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                "content",
            )

        with cls.atomic():
            message = Message.objects.create(
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                message_type=message_type,
                file_url=file_url,
                sent_at=timezone.now(),
                is_read=False,
            )
            Conversation.objects.filter(id=conversation_id).update(
                last_message_at=message.sent_at,
                updated_at=timezone.now(),
            )

        cls.get_logger().debug(
            f"User {sender_id} sent message {message.id} to conversation {conversation_id}"
        )
        return ServiceResult.success(cls.serialize_one(message))

    @classmethod
    def get_message(cls, message_id: int, user_id: int) -> ServiceResult[dict]:
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _not_found("message", message_id)
        if not ParticipantService.is_active_participant(message.conversation_id, user_id):
            return _access_denied()
        return ServiceResult.success(cls.serialize_one(message))

    @classmethod
    def get_messages(
        cls,
        conversation_id: int,
        user_id: int,
        page: int = 0,
        size: int = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE,
    ) -> ServiceResult[list[dict]]:
        """
        Page through a conversation's history.

        Pages are counted from the newest message (page 0 holds the most
        recent `size` messages), but each page is returned oldest-first for
        rendering in a chat window. Clients merging pages must re-sort.
        """
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        if page < 0:
            return _invalid("Page must be zero or positive", "page")
        if size < 1:
            return _invalid("Page size must be positive", "size")
        size = min(size, MESSAGE_CONFIG.MAX_PAGE_SIZE)

        offset = page * size
        newest_first = Message.objects.filter(conversation_id=conversation_id).order_by(
            "-sent_at", "-id"
        )[offset : offset + size]
        return ServiceResult.success(cls.serialize(reversed(list(newest_first))))

    @classmethod
    def get_recent_messages(
        cls,
        conversation_id: int,
        user_id: int,
        limit: int = MESSAGE_CONFIG.DEFAULT_RECENT_LIMIT,
    ) -> ServiceResult[list[dict]]:
        """Last `limit` messages, always ascending by send time."""
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        if limit < 1:
            return _invalid("Limit must be positive", "limit")
        limit = min(limit, MESSAGE_CONFIG.MAX_PAGE_SIZE)

        latest = Message.objects.filter(conversation_id=conversation_id).order_by(
            "-sent_at", "-id"
        )[:limit]
        ascending = sorted(latest, key=lambda m: (m.sent_at, m.id))
        return ServiceResult.success(cls.serialize(ascending))

    @classmethod
    def get_messages_since(
        cls, conversation_id: int, user_id: int, since: datetime
    ) -> ServiceResult[list[dict]]:
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        messages = Message.objects.filter(
            conversation_id=conversation_id, sent_at__gte=since
        ).order_by("sent_at", "id")
        return ServiceResult.success(cls.serialize(messages))

    @classmethod
    def get_last_message(cls, conversation_id: int, user_id: int) -> ServiceResult[dict | None]:
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        message = (
            Message.objects.filter(conversation_id=conversation_id)
            .order_by("-sent_at", "-id")
            .first()
        )
        return ServiceResult.success(cls.serialize_one(message) if message else None)

    @classmethod
    def get_unread_messages(cls, conversation_id: int, user_id: int) -> ServiceResult[list[dict]]:
        """Messages in the conversation not read yet and not sent by the user."""
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        messages = cls._unread_for(user_id).filter(conversation_id=conversation_id)
        return ServiceResult.success(cls.serialize(messages.order_by("sent_at", "id")))

    @classmethod
    def count_unread(cls, conversation_id: int, user_id: int) -> ServiceResult[int]:
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied
        return ServiceResult.success(
            cls._unread_for(user_id).filter(conversation_id=conversation_id).count()
        )

    @classmethod
    def count_total_unread(cls, user_id: int) -> ServiceResult[int]:
        """Unread messages across the user's active, non-archived conversations."""
        conversation_ids = Participant.objects.filter(
            user_id=user_id,
            is_active=True,
            conversation__is_archived=False,
        ).values("conversation_id")
        return ServiceResult.success(
            cls._unread_for(user_id)
            .filter(conversation_id__in=conversation_ids)
            .count()
        )

    @classmethod
    def mark_message_as_read(cls, message_id: int, user_id: int) -> ServiceResult[dict]:
        """
        Mark one message as read.

        Marking your own message is a no-op: it succeeds and leaves is_read
        untouched.

        Error codes:
            NOT_FOUND: Message does not exist
            ACCESS_DENIED: User is not an active participant of its conversation
        """
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _not_found("message", message_id)

        if message.sender_id == user_id:
            return ServiceResult.success(cls.serialize_one(message))

        if not ParticipantService.is_active_participant(message.conversation_id, user_id):
            return _access_denied()

        if not message.is_read:
            message.is_read = True
            message.save(update_fields=["is_read", "updated_at"])
        return ServiceResult.success(cls.serialize_one(message))

    @classmethod
    def mark_all_as_read(cls, conversation_id: int, user_id: int) -> ServiceResult[dict]:
        """
        Mark every message addressed to the user in the conversation as read.

        Idempotent; the result always reports unread_count 0.
        """
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied

        marked = (
            cls._unread_for(user_id)
            .filter(conversation_id=conversation_id)
            .update(is_read=True, updated_at=timezone.now())
        )
        if marked:
            cls.get_logger().debug(
                f"User {user_id} read {marked} messages in conversation {conversation_id}"
            )
        return ServiceResult.success(
            {
                "conversation_id": conversation_id,
                "user_id": user_id,
                "marked_count": marked,
                "unread_count": cls._unread_for(user_id)
                .filter(conversation_id=conversation_id)
                .count(),
            }
        )

    @classmethod
    def delete_message(cls, message_id: int, user_id: int) -> ServiceResult[dict]:
        """
        Soft delete a message; only its sender may do so.

        Error codes:
            NOT_FOUND: Message does not exist
            ACCESS_DENIED: User is not the sender
        """
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _not_found("message", message_id)
        if message.sender_id != user_id:
            return _access_denied("message")

        message.soft_delete()
        cls.get_logger().info(f"User {user_id} deleted message {message_id}")
        return ServiceResult.success(cls.serialize_one(message))

    @classmethod
    def search_messages(
        cls,
        user_id: int,
        term: str | None,
        limit: int = MESSAGE_CONFIG.SEARCH_DEFAULT_LIMIT,
    ) -> ServiceResult[list[dict]]:
        """
        Case-insensitive content search over conversations the user is in.

        A blank term returns no results (unlike search_conversations, which
        falls back to the full listing).
        """
        if not term or not term.strip():
            return ServiceResult.success([])
        limit = max(1, min(limit, MESSAGE_CONFIG.SEARCH_MAX_RESULTS))

        conversation_ids = Participant.objects.filter(
            user_id=user_id, is_active=True
        ).values("conversation_id")
        messages = (
            Message.objects.filter(
                conversation_id__in=conversation_ids,
                content__icontains=term.strip(),
                is_deleted=False,
            )
            .order_by("-sent_at", "-id")[:limit]
        )
        return ServiceResult.success(cls.serialize(messages))

    @classmethod
    def get_message_statistics(cls, conversation_id: int, user_id: int) -> ServiceResult[dict]:
        denied = cls._guard(conversation_id, user_id)
        if denied:
            return denied

        messages = Message.objects.filter(conversation_id=conversation_id)
        return ServiceResult.success(
            {
                "total_messages": messages.count(),
                "text_messages": messages.filter(message_type=MessageType.TEXT).count(),
                "file_messages": messages.filter(message_type=MessageType.FILE).count(),
                "image_messages": messages.filter(message_type=MessageType.IMAGE).count(),
                "unread_messages": cls._unread_for(user_id)
                .filter(conversation_id=conversation_id)
                .count(),
            }
        )
