"""
WebSocket wire protocol for the realtime gateway.

Inbound frames (client -> server):
    {"type": "SEND_MESSAGE", "conversationId": 1, "content": "Hi", "messageType": "text"}
    {"type": "TYPING_START" | "TYPING_STOP" | "MARK_READ" | "JOIN_CONVERSATION",
     "conversationId": 1}

Outbound events (server -> client):
    {"type": "NEW_MESSAGE" | "USER_TYPING" | "USER_STOPPED_TYPING" | "MESSAGES_READ"
             | "USER_JOINED" | "USER_OFFLINE" | "ERROR",
     "conversationId"?, "userId"?, "message"?, "error"?, "timestamp"}

Frame kinds form a closed set (FrameType); anything else decodes to
FrameType.UNKNOWN, which the gateway logs and ignores.

Delivery rules (should_deliver):
    ERROR: only to the connection(s) of the addressed user
    event with conversationId: only to cached members of that conversation
    event without conversationId (USER_OFFLINE): to everyone
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.utils import timezone

from core.exceptions import ValidationError

from chat.models import MessageType

if TYPE_CHECKING:
    from chat.presence import PresenceRegistry


class FrameType(enum.Enum):
    """Kinds of inbound frames."""

    SEND_MESSAGE = "SEND_MESSAGE"
    TYPING_START = "TYPING_START"
    TYPING_STOP = "TYPING_STOP"
    MARK_READ = "MARK_READ"
    JOIN_CONVERSATION = "JOIN_CONVERSATION"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_wire(cls, value: Any) -> FrameType:
        if isinstance(value, str) and value != cls.UNKNOWN.value:
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNKNOWN


class EventType(enum.Enum):
    """Kinds of outbound events."""

    NEW_MESSAGE = "NEW_MESSAGE"
    USER_TYPING = "USER_TYPING"
    USER_STOPPED_TYPING = "USER_STOPPED_TYPING"
    MESSAGES_READ = "MESSAGES_READ"
    USER_JOINED = "USER_JOINED"
    USER_OFFLINE = "USER_OFFLINE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class InboundFrame:
    type: FrameType
    conversation_id: int | None = None
    content: str = ""
    message_type: str = MessageType.TEXT
    raw_type: Any = None


def _coerce_id(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer", details={name: value})
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{name} must be an integer", details={name: value})


def parse_frame(content: Any) -> InboundFrame:
    """
    Decode a client frame.

    Raises:
        ValidationError: Payload is not an object, or a known frame kind has a
            missing or non-integer conversationId
    """
    if not isinstance(content, dict):
        raise ValidationError("Frame must be a JSON object")

    raw_type = content.get("type")
    frame_type = FrameType.from_wire(raw_type)
    if frame_type is FrameType.UNKNOWN:
        return InboundFrame(type=frame_type, raw_type=raw_type)

    if content.get("conversationId") is None:
        raise ValidationError(
            f"conversationId is required for {frame_type.value}",
            details={"type": frame_type.value},
        )
    conversation_id = _coerce_id(content["conversationId"], "conversationId")

    text = content.get("content")
    message_type = content.get("messageType") or MessageType.TEXT
    return InboundFrame(
        type=frame_type,
        conversation_id=conversation_id,
        content=text if isinstance(text, str) else "",
        message_type=str(message_type),
        raw_type=raw_type,
    )


@dataclass(frozen=True)
class ChatEvent:
    """Outbound event; carried on the channel layer in its wire form (to_dict)."""

    type: EventType
    conversation_id: int | None = None
    user_id: int | None = None
    message: dict | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=timezone.now)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.conversation_id is not None:
            payload["conversationId"] = self.conversation_id
        if self.user_id is not None:
            payload["userId"] = self.user_id
        if self.message is not None:
            payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error
        payload["timestamp"] = self.timestamp.isoformat()
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ChatEvent:
        """Rebuild an event from its wire form."""
        return cls(
            EventType(payload["type"]),
            conversation_id=payload.get("conversationId"),
            user_id=payload.get("userId"),
            message=payload.get("message"),
            error=payload.get("error"),
            timestamp=datetime.fromisoformat(payload["timestamp"]),
        )

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def new_message(cls, conversation_id: int, message: dict) -> ChatEvent:
        return cls(
            EventType.NEW_MESSAGE,
            conversation_id=conversation_id,
            user_id=message.get("sender_id"),
            message=message,
        )

    @classmethod
    def typing(cls, conversation_id: int, user_id: int, started: bool) -> ChatEvent:
        event_type = EventType.USER_TYPING if started else EventType.USER_STOPPED_TYPING
        return cls(event_type, conversation_id=conversation_id, user_id=user_id)

    @classmethod
    def messages_read(cls, conversation_id: int, user_id: int) -> ChatEvent:
        return cls(EventType.MESSAGES_READ, conversation_id=conversation_id, user_id=user_id)

    @classmethod
    def user_joined(cls, conversation_id: int, user_id: int) -> ChatEvent:
        return cls(EventType.USER_JOINED, conversation_id=conversation_id, user_id=user_id)

    @classmethod
    def user_offline(cls, user_id: int) -> ChatEvent:
        return cls(EventType.USER_OFFLINE, user_id=user_id)

    @classmethod
    def directed_error(cls, user_id: int, error: str) -> ChatEvent:
        return cls(EventType.ERROR, user_id=user_id, error=error)


def should_deliver(event: ChatEvent, user_id: int, registry: PresenceRegistry) -> bool:
    """Whether the connection of user_id should forward event to its client."""
    if event.type is EventType.ERROR:
        return event.user_id == user_id
    if event.conversation_id is not None:
        return registry.is_member(user_id, event.conversation_id)
    return True
