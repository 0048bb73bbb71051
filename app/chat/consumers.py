"""
WebSocket consumer for the realtime chat gateway.

One ChatConsumer instance serves one client connection. All connections in
the process share the presence registry and join one channel layer group
(chat.broadcast.BROADCAST_GROUP) through which every chat event is fanned out.

Connection lifecycle:
    CONNECTING: scope["user_id"] (set by UserIdentityMiddleware) is required;
        without it the handshake is refused with close code 4001
    OPEN: the connection is registered, joins the broadcast group, and the
        user's memberships are cached on their first connection
    CLOSING: on disconnect, error or cancellation the registry entry and
        the group membership are released (always, see __call__)

Frames (from client):
    SEND_MESSAGE: persist via MessageService, broadcast NEW_MESSAGE
    TYPING_START / TYPING_STOP: broadcast USER_TYPING / USER_STOPPED_TYPING
    MARK_READ: MessageService.mark_all_as_read, broadcast MESSAGES_READ
    JOIN_CONVERSATION: access check, cache membership, broadcast USER_JOINED
    anything else: logged and ignored

Group events (from channel layer):
    chat.event: forwarded to the client if should_deliver() allows it

Failures are reported to the originating connection only, as an ERROR event.
"""

from __future__ import annotations

import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.db import DatabaseError

from core.exceptions import ValidationError

from chat.broadcast import BROADCAST_GROUP, publish
from chat.constants import PRESENCE_CONFIG
from chat.presence import presence_registry
from chat.protocol import ChatEvent, FrameType, InboundFrame, parse_frame, should_deliver
from chat.services import MessageService, ParticipantService

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat.

    Attributes:
        registry: Shared presence registry
        user_id: Id of the connected user (after connect)
        connection_id: Unique id of this connection within the registry
    """

    registry = presence_registry

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id: int | None = None
        self.connection_id = uuid.uuid4().hex
        self._released = False

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self._release()

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self):
        user_id = self.scope.get("user_id")
        if user_id is None:
            logger.warning("Rejected WebSocket connection without a user id")
            await self.close(code=PRESENCE_CONFIG.CLOSE_CODE_NO_IDENTITY)
            return

        self.user_id = user_id
        first_connection = self.registry.on_connect(user_id, self.connection_id)
        await self.channel_layer.group_add(BROADCAST_GROUP, self.channel_name)
        if first_connection:
            await self._load_memberships()

        await self.accept()
        logger.info(f"User {user_id} connected ({self.connection_id})")

    async def disconnect(self, close_code):
        if self.user_id is not None:
            logger.info(
                f"User {self.user_id} disconnected ({self.connection_id}, code {close_code})"
            )
        await self._release()

    async def _release(self) -> None:
        """Release registry entry and group membership; safe to call repeatedly."""
        if self._released or self.user_id is None:
            return
        self._released = True

        await self.channel_layer.group_discard(BROADCAST_GROUP, self.channel_name)
        if self.registry.on_disconnect(self.user_id, self.connection_id):
            await self._broadcast(ChatEvent.user_offline(self.user_id))

    async def _load_memberships(self) -> None:
        try:
            conversation_ids = await database_sync_to_async(
                ParticipantService.get_user_conversation_ids
            )(self.user_id)
        except DatabaseError as exc:
            logger.error(
                f"Could not load memberships for user {self.user_id}; "
                f"no conversations cached yet: {exc}"
            )
            return
        self.registry.load_memberships(self.user_id, conversation_ids)

    # =========================================================================
    # Group events
    # =========================================================================

    async def chat_event(self, message):
        """Forward a broadcast event if it concerns this connection's user."""
        event = ChatEvent.from_dict(message["event"])
        if should_deliver(event, self.user_id, self.registry):
            await self.send_json(message["event"])

    # =========================================================================
    # Inbound frames
    # =========================================================================

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        if text_data is None:
            await self._send_error("Binary frames are not supported")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self._send_error("Frame is not valid JSON")
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        try:
            frame = parse_frame(content)
        except ValidationError as exc:
            await self._send_error(exc.message)
            return

        try:
            await self._dispatch(frame)
        except Exception:
            logger.exception(
                f"Unhandled error processing {frame.type.value} from user {self.user_id}"
            )
            await self._send_error(f"Could not process {frame.type.value}")

    async def _dispatch(self, frame: InboundFrame) -> None:
        if frame.type is FrameType.SEND_MESSAGE:
            await self._handle_send_message(frame)
        elif frame.type in (FrameType.TYPING_START, FrameType.TYPING_STOP):
            await self._handle_typing(frame)
        elif frame.type is FrameType.MARK_READ:
            await self._handle_mark_read(frame)
        elif frame.type is FrameType.JOIN_CONVERSATION:
            await self._handle_join(frame)
        elif frame.type is FrameType.UNKNOWN:
            logger.info(f"Ignoring unknown frame type {frame.raw_type!r} from user {self.user_id}")

    async def _handle_send_message(self, frame: InboundFrame) -> None:
        result = await database_sync_to_async(MessageService.send_message)(
            frame.conversation_id,
            self.user_id,
            frame.content,
            frame.message_type,
        )
        if not result.success:
            await self._send_error(f"Failed to send message: {result.error}")
            return

        self.registry.join_conversation(self.user_id, frame.conversation_id)
        await self._broadcast(ChatEvent.new_message(frame.conversation_id, dict(result.data)))

    async def _handle_typing(self, frame: InboundFrame) -> None:
        if not self.registry.is_member(self.user_id, frame.conversation_id):
            await self._send_error("Access denied to this conversation")
            return
        started = frame.type is FrameType.TYPING_START
        await self._broadcast(ChatEvent.typing(frame.conversation_id, self.user_id, started))

    async def _handle_mark_read(self, frame: InboundFrame) -> None:
        result = await database_sync_to_async(MessageService.mark_all_as_read)(
            frame.conversation_id, self.user_id
        )
        if not result.success:
            await self._send_error(f"Failed to mark messages as read: {result.error}")
            return
        await self._broadcast(ChatEvent.messages_read(frame.conversation_id, self.user_id))

    async def _handle_join(self, frame: InboundFrame) -> None:
        allowed = await database_sync_to_async(ParticipantService.is_active_participant)(
            frame.conversation_id, self.user_id
        )
        if not allowed:
            await self._send_error("Access denied to this conversation")
            return
        self.registry.join_conversation(self.user_id, frame.conversation_id)
        await self._broadcast(ChatEvent.user_joined(frame.conversation_id, self.user_id))

    async def _broadcast(self, event: ChatEvent) -> None:
        await publish(event, self.channel_layer)

    async def _send_error(self, error: str) -> None:
        """Send an ERROR event to this connection only."""
        await self.send_json(ChatEvent.directed_error(self.user_id, error).to_dict())
