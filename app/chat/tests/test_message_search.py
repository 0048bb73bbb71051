"""
Tests for MessageService.search_messages().

Search is a case-insensitive substring match over message content,
restricted to conversations the user actively participates in.
"""

from datetime import timedelta

from django.utils import timezone

from chat.services import MessageService
from chat.tests.factories import ConversationFactory, MessageFactory


class TestSearchMessages:
    """Tests for content search."""

    def test_matches_case_insensitively(self, conversation, student, tutor):
        hit = MessageFactory(conversation=conversation, sender=tutor, content="The Quadratic formula")
        MessageFactory(conversation=conversation, sender=tutor, content="Linear equations")

        result = MessageService.search_messages(student.id, "quadratic")

        assert [m["id"] for m in result.data] == [hit.id]

    def test_blank_term_returns_nothing(self, conversation, student, tutor_message):
        """
        Why it matters: Unlike conversation search, a blank message search
        is not a request to list everything.
        """
        assert MessageService.search_messages(student.id, "").data == []
        assert MessageService.search_messages(student.id, "   ").data == []
        assert MessageService.search_messages(student.id, None).data == []

    def test_only_searches_own_conversations(self, conversation, student, tutor, outsider):
        MessageFactory(conversation=conversation, sender=tutor, content="secret homework")
        foreign = ConversationFactory(members=[outsider, tutor])
        visible = MessageFactory(conversation=foreign, sender=tutor, content="homework for Olive")

        result = MessageService.search_messages(outsider.id, "homework")

        assert [m["id"] for m in result.data] == [visible.id]

    def test_left_conversations_are_not_searched(self, conversation, tutor, tutor_message):
        conversation.participants.get(user=tutor).deactivate()

        assert MessageService.search_messages(tutor.id, "quadratic").data == []

    def test_deleted_messages_are_excluded(self, conversation, student, tutor_message):
        tutor_message.soft_delete()

        assert MessageService.search_messages(student.id, "quadratic").data == []

    def test_newest_first_and_limited(self, conversation, student, tutor):
        start = timezone.now() - timedelta(hours=1)
        messages = [
            MessageFactory(
                conversation=conversation,
                sender=tutor,
                content=f"practice set {i}",
                sent_at=start + timedelta(minutes=i),
            )
            for i in range(4)
        ]

        result = MessageService.search_messages(student.id, "practice", limit=2)

        assert [m["id"] for m in result.data] == [messages[3].id, messages[2].id]

    def test_limit_is_clamped(self, conversation, student, tutor):
        MessageFactory(conversation=conversation, sender=tutor, content="practice")

        assert len(MessageService.search_messages(student.id, "practice", limit=0).data) == 1
        assert len(MessageService.search_messages(student.id, "practice", limit=5000).data) == 1
