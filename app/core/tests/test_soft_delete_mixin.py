"""
Tests for SoftDeleteMixin in core/model_mixins.py.

This module tests:
- soft_delete() sets is_deleted and deleted_at and keeps the row
- restore() clears the flags
- Idempotency of soft_delete and restore
- The on_soft_delete hook and its extra saved fields

Chat messages are the soft-deletable model used as the test subject.
"""

from unittest.mock import patch

from freezegun import freeze_time

from chat.models import Message
from chat.tests.factories import MessageFactory


# =============================================================================
# soft_delete() Tests
# =============================================================================


class TestSoftDelete:
    """Tests for SoftDeleteMixin.soft_delete()."""

    def test_sets_flags_and_keeps_row(self, db):
        message = MessageFactory()

        message.soft_delete()

        stored = Message.objects.get(pk=message.pk)
        assert stored.is_deleted is True
        assert stored.deleted_at is not None

    def test_is_idempotent(self, db):
        """
        A second soft_delete() keeps the original timestamp.

        Why it matters: Retried deletes must not rewrite history.
        """
        message = MessageFactory()

        with freeze_time("2026-01-10 09:00:00"):
            message.soft_delete()
        first_deleted_at = message.deleted_at

        with freeze_time("2026-01-11 09:00:00"):
            message.soft_delete()

        message.refresh_from_db()
        assert message.deleted_at == first_deleted_at

    def test_hook_runs_and_its_fields_are_saved(self, db):
        message = MessageFactory(file_url="https://cdn.example.com/notes.pdf")

        message.soft_delete()
        message.refresh_from_db()
        assert message.file_url == ""


# =============================================================================
# restore() Tests
# =============================================================================


class TestRestore:
    """Tests for SoftDeleteMixin.restore()."""

    def test_clears_flags(self, db):
        message = MessageFactory()
        message.soft_delete()

        message.restore()
        message.refresh_from_db()

        assert message.is_deleted is False
        assert message.deleted_at is None

    def test_restore_of_live_record_is_noop(self, db):
        message = MessageFactory()

        with patch.object(Message, "save") as save:
            message.restore()

        save.assert_not_called()
