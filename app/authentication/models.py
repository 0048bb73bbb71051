"""
Authentication models.

This module defines the platform user:
- User: Custom user model with email-based authentication, display name and
  platform role (student, tutor, admin)

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: UserDirectory lookups consumed by the chat core
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Role of a user on the tutoring platform."""

    STUDENT = "STUDENT", "Student"
    TUTOR = "TUTOR", "Tutor"
    ADMIN = "ADMIN", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        first_name: Given name shown in chat
        last_name: Family name shown in chat
        role: Platform role (student, tutor, admin)
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email="alice@example.com",
            password="securepassword",
            first_name="Alice",
            last_name="Martin",
            role=UserRole.TUTOR,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    first_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="User's first name",
    )
    last_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="User's last name",
    )
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.STUDENT,
        help_text="Platform role of the user",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """
        Return "first last", falling back to the email when no name is set.
        """
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]
