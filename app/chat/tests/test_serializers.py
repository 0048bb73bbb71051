"""
Tests for chat serializers: previews and the unknown-user fallback policy.
"""

from chat.serializers import ParticipantSerializer, build_preview
from chat.tests.factories import ParticipantFactory


class TestBuildPreview:
    def test_short_content_unchanged(self):
        assert build_preview("Quick question") == "Quick question"

    def test_exactly_fifty_characters_unchanged(self):
        assert build_preview("b" * 50) == "b" * 50

    def test_long_content_truncated_with_ellipsis(self):
        assert build_preview("c" * 51) == "c" * 50 + "..."


class TestParticipantSerializer:
    def test_enriched_with_user_details(self, db, tutor):
        participant = ParticipantFactory(user=tutor)

        data = ParticipantSerializer(participant).data

        assert data["full_name"] == "Alice Martin"
        assert data["email"] == tutor.email
        assert data["user_role"] == "TUTOR"

    def test_unresolvable_user_gets_placeholder(self, db):
        """
        Why it matters: A missing user degrades to a placeholder instead of
        failing the whole response.
        """
        participant = ParticipantFactory()
        participant.user_id = 987654

        data = ParticipantSerializer(participant).data

        assert data["full_name"] == "Unknown user"
        assert data["email"] == ""
        assert data["user_role"] is None
