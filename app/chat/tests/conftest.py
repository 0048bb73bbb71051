"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for a student, a tutor and an outsider
- A two-person conversation between the student and the tutor
- Message fixtures
- API client helpers for authenticated requests
- Isolated presence registry and channel layer for gateway tests

Usage:
    def test_example(conversation, student_client):
        response = student_client.get(f"/api/v1/chat/conversations/{conversation.id}/")
        assert response.status_code == 200
"""

import pytest
from channels.layers import get_channel_layer
from rest_framework.test import APIClient

from authentication.tests.factories import TutorFactory, UserFactory
from chat.consumers import ChatConsumer
from chat.presence import PresenceRegistry
from chat.tests.factories import ConversationFactory, MessageFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def student(db):
    """Create a student."""
    return UserFactory(first_name="Sam", last_name="Student")


@pytest.fixture
def tutor(db):
    """Create a tutor."""
    return TutorFactory(first_name="Alice", last_name="Martin")


@pytest.fixture
def outsider(db):
    """Create a user who is not a participant in any test conversation."""
    return UserFactory(first_name="Olive", last_name="Outsider")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(db, student, tutor):
    """Active conversation between the student and the tutor."""
    return ConversationFactory(
        subject="Algebra help",
        created_by=student,
        members=[student, tutor],
    )


@pytest.fixture
def tutor_message(conversation, tutor):
    """Unread message from the tutor to the student."""
    return MessageFactory(
        conversation=conversation,
        sender=tutor,
        content="Let's look at quadratic equations.",
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def student_client(student):
    """API client authenticated as the student."""
    client = APIClient()
    client.force_authenticate(user=student)
    return client


@pytest.fixture
def tutor_client(tutor):
    """API client authenticated as the tutor."""
    client = APIClient()
    client.force_authenticate(user=tutor)
    return client


@pytest.fixture
def outsider_client(outsider):
    """API client authenticated as the outsider."""
    client = APIClient()
    client.force_authenticate(user=outsider)
    return client


# =============================================================================
# Realtime Fixtures
# =============================================================================


@pytest.fixture
def registry():
    """Fresh presence registry."""
    return PresenceRegistry(shard_count=4)


@pytest.fixture
def gateway(monkeypatch, settings, registry):
    """
    Point ChatConsumer and the services at an isolated registry, and give
    the test a fresh in-memory channel layer.

    Returns:
        (registry, channel_layer)
    """
    settings.CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels.layers.InMemoryChannelLayer",
            "CONFIG": {"capacity": 16},
        },
    }
    monkeypatch.setattr(ChatConsumer, "registry", registry)
    monkeypatch.setattr("chat.services.presence_registry", registry)
    return registry, get_channel_layer()
