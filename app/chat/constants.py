"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Conversation summaries (previews, group threshold)
- Message operations (content limits, pagination, search)
- Presence and broadcast (registry shards, consumer buffers)
- Error codes shared by services, views and the WebSocket gateway

Import example:
    from chat.constants import MESSAGE_CONFIG, ERROR_CODES
"""

from typing import Final

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError


# =============================================================================
# Error Codes
# =============================================================================


class ERROR_CODES:
    """Machine-readable failure codes returned in ServiceResult.error_code."""

    VALIDATION: Final[str] = ValidationError.default_error_code
    ACCESS_DENIED: Final[str] = PermissionDeniedError.default_error_code
    NOT_FOUND: Final[str] = NotFoundError.default_error_code


# =============================================================================
# Conversation Configuration
# =============================================================================


class CONVERSATION_CONFIG:
    """Configuration for conversations and their summaries."""

    MAX_SUBJECT_LENGTH: Final[int] = 255
    DEFAULT_ROLE: Final[str] = "PARTICIPANT"

    # A conversation with more active participants than this is a group
    GROUP_THRESHOLD: Final[int] = 2

    # Subjects containing this keyword are flagged as support threads
    SUPPORT_KEYWORD: Final[str] = "support"

    # Last message preview length before the ellipsis
    PREVIEW_LENGTH: Final[int] = 50


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100
    DEFAULT_RECENT_LIMIT: Final[int] = 20

    SEARCH_DEFAULT_LIMIT: Final[int] = 20
    SEARCH_MAX_RESULTS: Final[int] = 100

    DELETED_PLACEHOLDER: Final[str] = "[Message deleted]"

    # Sender (or participant) whose user record no longer resolves
    UNKNOWN_USER_NAME: Final[str] = "Unknown user"


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for the in-memory presence registry and event fan-out."""

    DEFAULT_SHARDS: Final[int] = 32

    # WebSocket close code when the handshake carries no usable user id
    CLOSE_CODE_NO_IDENTITY: Final[int] = 4001
