"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user):
        assert UserDirectory.user_exists(user.id)
"""

import pytest

from authentication.tests.factories import TutorFactory, UserFactory


@pytest.fixture
def user(db):
    """Create a student with a known name."""
    return UserFactory(first_name="Sam", last_name="Student")


@pytest.fixture
def tutor(db):
    """Create a tutor with a known name."""
    return TutorFactory(first_name="Alice", last_name="Martin")
