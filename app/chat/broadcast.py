"""
Chat event fan-out over the Channels layer.

Every ChatConsumer joins BROADCAST_GROUP when it connects. Events are
published to that group and each consumer decides, in its chat_event
handler, whether the event concerns its user (see protocol.should_deliver).

Backpressure policy:
    The channel layer bounds each consumer's inbox at `capacity`
    (CHANNEL_LAYERS, from CHAT_BROADCAST_BUFFER_SIZE). group_send never
    blocks: an event addressed to a full inbox is dropped for that consumer
    only, so a slow client loses events instead of stalling senders or
    growing memory without bound.

Usage:
    from chat.broadcast import BROADCAST_GROUP, publish

    await self.channel_layer.group_add(BROADCAST_GROUP, self.channel_name)
    await publish(ChatEvent.user_offline(user_id), self.channel_layer)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from channels.layers import get_channel_layer

if TYPE_CHECKING:
    from channels.layers import BaseChannelLayer

    from chat.protocol import ChatEvent

logger = logging.getLogger(__name__)

BROADCAST_GROUP = "chat.broadcast"

# Dispatched to ChatConsumer.chat_event
EVENT_MESSAGE_TYPE = "chat.event"


def build_envelope(event: ChatEvent) -> dict:
    """Wrap an event as a channel layer message (wire form, layer-serializable)."""
    return {"type": EVENT_MESSAGE_TYPE, "event": event.to_dict()}


async def publish(event: ChatEvent, channel_layer: BaseChannelLayer | None = None) -> None:
    """Send an event to every connected consumer."""
    channel_layer = channel_layer or get_channel_layer()
    await channel_layer.group_send(BROADCAST_GROUP, build_envelope(event))
    logger.debug(f"Published {event.type.value} to {BROADCAST_GROUP}")
