"""
Factory Boy factories for chat models.

Provides realistic test data generation for:
- Conversation: Subject threads, optionally linked to a tutoring session
- Participant: User membership in conversations
- Message: Text, file and system messages

Usage:
    from chat.tests.factories import (
        ConversationFactory,
        ParticipantFactory,
        MessageFactory,
    )

    conversation = ConversationFactory(subject="Algebra help")
    ParticipantFactory(conversation=conversation, user=user)
    message = MessageFactory(conversation=conversation, sender=user)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from chat.models import Conversation, Message, MessageType, Participant


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Conversation model.

    Creates an active conversation without participants. Pass `members`
    to add active participants in one go.

    Examples:
        conversation = ConversationFactory()
        conversation = ConversationFactory(is_archived=True)
        conversation = ConversationFactory(members=[student, tutor])
    """

    class Meta:
        model = Conversation
        skip_postgeneration_save = True

    subject = factory.Sequence(lambda n: f"Tutoring Chat {n}")
    is_archived = False
    session_id = None
    created_by = None
    last_message_at = None

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        """Add the given users as active participants."""
        if not create or not extracted:
            return
        for user in extracted:
            ParticipantFactory(conversation=self, user=user)


class ParticipantFactory(factory.django.DjangoModelFactory):
    """
    Factory for Participant model.

    Examples:
        participant = ParticipantFactory(conversation=conversation, user=user)

        # Former participant
        participant = ParticipantFactory(is_active=False, left_at=timezone.now())
    """

    class Meta:
        model = Participant

    conversation = factory.SubFactory(ConversationFactory)
    user = factory.SubFactory(UserFactory)
    role = "PARTICIPANT"
    joined_at = factory.LazyFunction(timezone.now)
    is_active = True
    left_at = None


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Creates an unread text message.

    Examples:
        message = MessageFactory(conversation=conversation, sender=user)
        read = MessageFactory(is_read=True)
        image = MessageFactory(
            message_type=MessageType.IMAGE,
            file_url="https://cdn.example.com/board.png",
        )
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    sender = factory.SubFactory(UserFactory)
    content = factory.Faker("sentence")
    message_type = MessageType.TEXT
    file_url = ""
    sent_at = factory.LazyFunction(timezone.now)
    is_read = False
