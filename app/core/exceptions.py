"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed or missing input
    ├── PermissionDeniedError - Actor lacks participation or ownership
    └── NotFoundError - Referenced row does not exist

Service methods report expected failures through ServiceResult; these
exceptions are raised at the transport edges (frame decoding, identity
resolution) where there is no result object to return.

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "conversationId must be an integer",
        details={"conversationId": "abc"},
    )

    try:
        frame = parse_frame(content)
    except BaseApplicationError as e:
        await self.send_json({"type": "ERROR", **e.to_dict()})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (offending fields, ids, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for an API or WebSocket response.

        Example:
            {
                "error": "Unsupported message type: video",
                "error_code": "VALIDATION_ERROR",
                "details": {"messageType": "video"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Malformed WebSocket frames
    - Missing or non-integer identifiers
    - Unsupported enum values (message kinds)
    """

    default_error_code: str = "VALIDATION_ERROR"


class PermissionDeniedError(BaseApplicationError):
    """Raised when the actor is not allowed to perform the operation."""

    default_error_code: str = "ACCESS_DENIED"


class NotFoundError(BaseApplicationError):
    """Raised when a referenced resource does not exist."""

    default_error_code: str = "NOT_FOUND"
