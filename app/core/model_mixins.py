"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin

    class Message(SoftDeleteMixin, BaseModel):
        content = models.TextField()

    message.soft_delete()
    message.is_deleted  # True, row still present

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class SoftDeleteMixin(models.Model):
    """
    Soft delete support for models.

    Instead of permanently deleting records, marks them as deleted.
    Deleted records stay queryable so history (and read state) is preserved.

    Fields:
        is_deleted: Boolean flag indicating soft delete status
        deleted_at: Timestamp when the record was soft deleted

    Hooks:
        on_soft_delete(): called before the flags are persisted, so
            subclasses can scrub extra fields in the same save
        soft_delete_fields(): extra field names to include in that save
    """

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this record has been soft deleted",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was soft deleted",
    )

    class Meta:
        abstract = True

    def soft_delete(self) -> None:
        """
        Mark this record as deleted.

        Idempotent: deleting an already deleted record keeps the
        original deleted_at timestamp.
        """
        if self.is_deleted:
            return
        self.on_soft_delete()
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(
            update_fields=[
                "is_deleted",
                "deleted_at",
                "updated_at",
                *self.soft_delete_fields(),
            ]
        )

    def restore(self) -> None:
        """Clear the soft delete flags."""
        if not self.is_deleted:
            return
        self.is_deleted = False
        self.deleted_at = None
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])

    def on_soft_delete(self) -> None:
        """Hook for subclasses; runs before the deletion is saved."""

    def soft_delete_fields(self) -> list[str]:
        """Extra fields modified by on_soft_delete()."""
        return []
