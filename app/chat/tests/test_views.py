"""
Tests for the chat REST API.

Views are thin glue over the services, so these tests focus on routing,
request validation and the mapping of failures to status codes:
    VALIDATION_ERROR -> 400, ACCESS_DENIED -> 403, NOT_FOUND -> 404
"""

from rest_framework import status

from chat.models import Message
from chat.tests.factories import ConversationFactory, MessageFactory

BASE = "/api/v1/chat"


class TestAuthentication:
    def test_anonymous_requests_are_rejected(self, api_client, db):
        response = api_client.get(f"{BASE}/conversations/")

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


# =============================================================================
# Conversations
# =============================================================================


class TestConversationEndpoints:
    """Tests for /conversations/ routes."""

    def test_create(self, student_client, student, tutor):
        response = student_client.post(
            f"{BASE}/conversations/",
            {"subject": "Algebra help", "participant_ids": [tutor.id]},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["subject"] == "Algebra help"
        assert {p["user_id"] for p in response.data["participants"]} == {student.id, tutor.id}

    def test_create_with_blank_subject_is_400(self, student_client, tutor):
        response = student_client.post(
            f"{BASE}/conversations/",
            {"subject": "", "participant_ids": [tutor.id]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_create_with_unknown_user_is_400(self, student_client):
        response = student_client.post(
            f"{BASE}/conversations/",
            {"subject": "Physics", "participant_ids": [987654]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "participant_ids" in response.data["errors"]

    def test_list_and_include_archived(self, student_client, student, tutor, conversation):
        ConversationFactory(members=[student, tutor], is_archived=True)

        default = student_client.get(f"{BASE}/conversations/")
        everything = student_client.get(f"{BASE}/conversations/?include_archived=true")

        assert [c["id"] for c in default.data] == [conversation.id]
        assert len(everything.data) == 2

    def test_retrieve(self, student_client, conversation):
        response = student_client.get(f"{BASE}/conversations/{conversation.id}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == conversation.id

    def test_retrieve_as_outsider_is_403(self, outsider_client, conversation):
        response = outsider_client.get(f"{BASE}/conversations/{conversation.id}/")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "ACCESS_DENIED"

    def test_retrieve_missing_is_404(self, student_client):
        response = student_client.get(f"{BASE}/conversations/424242/")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_patch_rename_and_archive(self, student_client, conversation):
        response = student_client.patch(
            f"{BASE}/conversations/{conversation.id}/",
            {"subject": "Algebra II", "archived": True},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["subject"] == "Algebra II"
        assert response.data["state"] == "ARCHIVED"

    def test_archive_action(self, tutor_client, conversation):
        response = tutor_client.post(f"{BASE}/conversations/{conversation.id}/archive/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_archived"] is True

    def test_leave(self, tutor_client, conversation, tutor):
        response = tutor_client.post(f"{BASE}/conversations/{conversation.id}/leave/")

        assert response.status_code == status.HTTP_200_OK
        assert conversation.has_active_participant(tutor.id) is False

    def test_unread_search_and_stats(self, student_client, conversation, tutor_message):
        unread = student_client.get(f"{BASE}/conversations/unread/")
        search = student_client.get(f"{BASE}/conversations/search/?q=algebra")
        stats = student_client.get(f"{BASE}/conversations/stats/")

        assert [c["id"] for c in unread.data] == [conversation.id]
        assert [c["id"] for c in search.data] == [conversation.id]
        assert stats.data["unread_conversations"] == 1


# =============================================================================
# Participants
# =============================================================================


class TestParticipantEndpoints:
    """Tests for /conversations/{id}/participants/ routes."""

    def test_list(self, student_client, conversation, student, tutor):
        response = student_client.get(f"{BASE}/conversations/{conversation.id}/participants/")

        assert response.status_code == status.HTTP_200_OK
        assert {p["user_id"] for p in response.data} == {student.id, tutor.id}

    def test_add(self, student_client, conversation, outsider):
        response = student_client.post(
            f"{BASE}/conversations/{conversation.id}/participants/",
            {"user_id": outsider.id},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["user_id"] == outsider.id

    def test_add_unknown_user_is_404(self, student_client, conversation):
        response = student_client.post(
            f"{BASE}/conversations/{conversation.id}/participants/",
            {"user_id": 987654},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_remove(self, student_client, conversation, tutor):
        response = student_client.delete(
            f"{BASE}/conversations/{conversation.id}/participants/{tutor.id}/"
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert conversation.has_active_participant(tutor.id) is False


# =============================================================================
# Messages
# =============================================================================


class TestMessageEndpoints:
    """Tests for message routes."""

    def test_send_and_list(self, student_client, conversation):
        sent = student_client.post(
            f"{BASE}/conversations/{conversation.id}/messages/",
            {"content": "Is question 3 right?"},
            format="json",
        )
        listed = student_client.get(f"{BASE}/conversations/{conversation.id}/messages/")

        assert sent.status_code == status.HTTP_201_CREATED
        assert sent.data["sender_name"] == "Sam Student"
        assert [m["id"] for m in listed.data] == [sent.data["id"]]

    def test_send_as_outsider_is_403_and_not_stored(self, outsider_client, conversation):
        response = outsider_client.post(
            f"{BASE}/conversations/{conversation.id}/messages/",
            {"content": "hello?"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Message.objects.count() == 0

    def test_send_empty_is_400(self, student_client, conversation):
        response = student_client.post(
            f"{BASE}/conversations/{conversation.id}/messages/",
            {"content": "   "},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_malformed_page_is_400(self, student_client, conversation):
        response = student_client.get(
            f"{BASE}/conversations/{conversation.id}/messages/?page=first"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_recent_unread_stats_and_read_all(self, student_client, conversation, tutor_message):
        recent = student_client.get(f"{BASE}/conversations/{conversation.id}/messages/recent/?limit=1")
        unread = student_client.get(f"{BASE}/conversations/{conversation.id}/messages/unread/")
        stats = student_client.get(f"{BASE}/conversations/{conversation.id}/messages/stats/")
        read = student_client.post(f"{BASE}/conversations/{conversation.id}/messages/read/")

        assert [m["id"] for m in recent.data] == [tutor_message.id]
        assert [m["id"] for m in unread.data] == [tutor_message.id]
        assert stats.data["unread_messages"] == 1
        assert read.data["marked_count"] == 1
        assert read.data["unread_count"] == 0

    def test_unread_count(self, student_client, tutor_message):
        response = student_client.get(f"{BASE}/messages/unread-count/")

        assert response.data == {"unread_count": 1}

    def test_get_and_mark_single_message(self, student_client, tutor_message):
        fetched = student_client.get(f"{BASE}/messages/{tutor_message.id}/")
        marked = student_client.post(f"{BASE}/messages/{tutor_message.id}/read/")

        assert fetched.data["content"] == tutor_message.content
        assert marked.data["is_read"] is True

    def test_delete_by_sender_and_by_other(self, student_client, tutor_client, tutor_message):
        denied = student_client.delete(f"{BASE}/messages/{tutor_message.id}/")
        deleted = tutor_client.delete(f"{BASE}/messages/{tutor_message.id}/")

        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert deleted.status_code == status.HTTP_200_OK
        assert deleted.data["content"] == "[Message deleted]"

    def test_search(self, student_client, conversation, tutor):
        hit = MessageFactory(conversation=conversation, sender=tutor, content="Homework due Friday")

        found = student_client.get(f"{BASE}/messages/search/?q=homework")
        blank = student_client.get(f"{BASE}/messages/search/?q=")

        assert [m["id"] for m in found.data] == [hit.id]
        assert blank.data == []


# =============================================================================
# Presence
# =============================================================================


class TestPresenceEndpoints:
    """Tests for /presence/ routes (registry of this process)."""

    def test_online_and_stats(self, student_client, monkeypatch, registry, student):
        monkeypatch.setattr("chat.views.presence_registry", registry)
        registry.on_connect(student.id, "c1")

        online = student_client.get(f"{BASE}/presence/online/")
        single = student_client.get(f"{BASE}/presence/online/{student.id}/")
        stats = student_client.get(f"{BASE}/presence/stats/")

        assert online.data == {"user_ids": [student.id]}
        assert single.data == {"user_id": student.id, "online": True}
        assert stats.data["total_sessions"] == 1
