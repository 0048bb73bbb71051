"""
Tests for chat event fan-out over the channel layer.

Features tested:
- Every channel in the broadcast group receives the event envelope
- A full consumer inbox drops events instead of blocking the sender
- Layer capacity follows CHAT_BROADCAST_BUFFER_SIZE
"""

import asyncio

import pytest
from channels.layers import InMemoryChannelLayer
from django.conf import settings

from chat.broadcast import BROADCAST_GROUP, EVENT_MESSAGE_TYPE, build_envelope, publish
from chat.protocol import ChatEvent


async def join_group(layer):
    channel = await layer.new_channel()
    await layer.group_add(BROADCAST_GROUP, channel)
    return channel


class TestPublish:
    """Tests for publish() and the event envelope."""

    def test_envelope_routes_to_chat_event_handler(self):
        event = ChatEvent.user_offline(7)

        envelope = build_envelope(event)

        assert envelope["type"] == EVENT_MESSAGE_TYPE == "chat.event"
        assert envelope["event"] == event.to_dict()

    async def test_every_group_member_receives_event(self):
        layer = InMemoryChannelLayer(capacity=4)
        first = await join_group(layer)
        second = await join_group(layer)

        await publish(ChatEvent.typing(3, 10, started=True), layer)

        for channel in (first, second):
            message = await layer.receive(channel)
            assert message["type"] == "chat.event"
            assert message["event"]["type"] == "USER_TYPING"
            assert message["event"]["conversationId"] == 3

    async def test_discarded_channel_receives_nothing(self):
        layer = InMemoryChannelLayer(capacity=4)
        channel = await join_group(layer)
        await layer.group_discard(BROADCAST_GROUP, channel)

        await publish(ChatEvent.user_offline(7), layer)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(layer.receive(channel), timeout=0.1)

    async def test_full_inbox_drops_events_without_blocking(self):
        """
        Why it matters: A slow consumer must neither block senders nor grow
        memory without bound.
        """
        layer = InMemoryChannelLayer(capacity=2)
        slow = await join_group(layer)

        for user_id in range(5):
            await asyncio.wait_for(publish(ChatEvent.user_offline(user_id), layer), timeout=1)

        received = [(await layer.receive(slow))["event"]["userId"] for _ in range(2)]
        assert received == [0, 1]
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(layer.receive(slow), timeout=0.1)


class TestLayerConfiguration:
    def test_capacity_follows_buffer_setting(self):
        config = settings.CHANNEL_LAYERS["default"]["CONFIG"]

        assert config["capacity"] == settings.CHAT_BROADCAST_BUFFER_SIZE
