"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views, consumers and models.
    Views and consumers handle transport concerns, models handle data,
    services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, access, missing rows)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class ConversationService(BaseService):
        @classmethod
        def archive(cls, conversation_id: int, user_id: int) -> ServiceResult[dict]:
            if not cls.is_participant(conversation_id, user_id):
                return ServiceResult.failure(
                    "Access denied to this conversation",
                    error_code="ACCESS_DENIED",
                )
            ...
            cls.get_logger().info(f"Archived conversation {conversation_id}")
            return ServiceResult.success(summary)

    # In a view
    result = ConversationService.archive(pk, request.user.id)
    if result.success:
        return Response(result.data)
    return Response(result.to_response(), status=403)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from typing import Any

T = TypeVar("T")
U = TypeVar("U")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, access violations,
    references to rows that do not exist).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(summary)

        # Failure case
        return ServiceResult.failure("Subject is required", "VALIDATION_ERROR")

        # Validation errors with field details
        return ServiceResult.failure(
            "Validation failed",
            error_code="VALIDATION_ERROR",
            errors={"participant_ids": ["Unknown user ids: 41, 42"]},
        )
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with the data on success, or error/error_code/errors on failure
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def map(self, func: Callable[[T], U]) -> ServiceResult[U]:
        """
        Transform the data if successful.

        Failed results are returned unchanged.

        Example:
            result = MessageService.get_message(message_id, user_id)
            content = result.map(lambda m: m["content"])
        """
        if self.success:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore[return-value]

    def __bool__(self) -> bool:
        """Allow using result in boolean context (same as result.success)."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code.

        Example:
            with cls.atomic():
                message.is_read = True
                message.save(update_fields=["is_read", "updated_at"])
        """
        with transaction.atomic():
            yield

    @classmethod
    def validate_required(cls, **kwargs: Any) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Strings are considered missing when blank; collections when empty.

        Returns:
            ServiceResult.failure if validation fails, None otherwise

        Example:
            validation = cls.validate_required(subject=subject)
            if validation:
                return validation
        """
        errors: dict[str, list[str]] = {}
        for field_name, value in kwargs.items():
            if value is None:
                errors[field_name] = ["This field is required."]
            elif isinstance(value, str) and not value.strip():
                errors[field_name] = ["This field may not be blank."]
            elif isinstance(value, (list, tuple, set)) and not value:
                errors[field_name] = ["This list may not be empty."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
