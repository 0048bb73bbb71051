"""
In-process presence and session registry.

Tracks which users hold live WebSocket connections in this process and which
conversations each of them should receive events for. The registry is a
cache used for event filtering only; nothing here is persisted.

Structure:
    connections:   user_id -> {connection_id, ...}
    conversations: user_id -> {conversation_id, ...}
    members:       conversation_id -> {user_id, ...}

Concurrency:
    Each map is split into lock stripes (shard = hash(key) % shard_count).
    Operations lock only the stripes of the keys they touch, so connect and
    disconnect traffic of unrelated users does not serialize on one lock.
    No operation holds two stripes at once, which rules out lock ordering
    deadlocks; readers may observe a slightly stale snapshot.

Usage:
    from chat.presence import presence_registry

    first = presence_registry.on_connect(user_id, channel_name)
    presence_registry.load_memberships(user_id, [1, 2, 3])
    presence_registry.is_member(user_id, 2)
    went_offline = presence_registry.on_disconnect(user_id, channel_name)
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import TYPE_CHECKING

from django.conf import settings

from chat.constants import PRESENCE_CONFIG

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

logger = logging.getLogger(__name__)


class _ShardedSetMap:
    """Map of key -> set, guarded by striped locks."""

    def __init__(self, shard_count: int):
        self._locks = [threading.Lock() for _ in range(shard_count)]
        self._shards: list[defaultdict[Hashable, set]] = [
            defaultdict(set) for _ in range(shard_count)
        ]

    def _slot(self, key: Hashable) -> tuple[threading.Lock, defaultdict]:
        index = hash(key) % len(self._shards)
        return self._locks[index], self._shards[index]

    def add(self, key: Hashable, value: Hashable) -> bool:
        """Add value under key; returns True if the set was empty before."""
        lock, shard = self._slot(key)
        with lock:
            values = shard[key]
            was_empty = not values
            values.add(value)
            return was_empty

    def update(self, key: Hashable, values: Iterable[Hashable]) -> None:
        lock, shard = self._slot(key)
        with lock:
            shard[key].update(values)

    def discard(self, key: Hashable, value: Hashable) -> bool:
        """Remove value from key; returns True if the set is now empty (and dropped)."""
        lock, shard = self._slot(key)
        with lock:
            values = shard.get(key)
            if values is None:
                return True
            values.discard(value)
            if not values:
                del shard[key]
                return True
            return False

    def pop(self, key: Hashable) -> set:
        lock, shard = self._slot(key)
        with lock:
            return shard.pop(key, set())

    def contains(self, key: Hashable, value: Hashable) -> bool:
        lock, shard = self._slot(key)
        with lock:
            values = shard.get(key)
            return values is not None and value in values

    def get(self, key: Hashable) -> set:
        lock, shard = self._slot(key)
        with lock:
            return set(shard.get(key, ()))

    def keys(self) -> set:
        result = set()
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                result.update(shard.keys())
        return result

    def total_values(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += sum(len(values) for values in shard.values())
        return total


class PresenceRegistry:
    """
    Thread-safe registry of online users and their conversation memberships.

    A user is online while at least one connection is registered for them.
    Membership caches are filled on the first connection and evicted (in
    both directions) when the last connection goes away.
    """

    def __init__(self, shard_count: int = PRESENCE_CONFIG.DEFAULT_SHARDS):
        if shard_count < 1:
            raise ValueError("shard_count must be positive")
        self._connections = _ShardedSetMap(shard_count)
        self._conversations = _ShardedSetMap(shard_count)
        self._members = _ShardedSetMap(shard_count)

    # =========================================================================
    # Connections
    # =========================================================================

    def on_connect(self, user_id: int, connection_id: str) -> bool:
        """
        Register a connection.

        Returns:
            True if this is the user's first live connection, in which case
            the caller is expected to load memberships.
        """
        first = self._connections.add(user_id, connection_id)
        logger.debug(f"Registered connection {connection_id} for user {user_id}")
        return first

    def on_disconnect(self, user_id: int, connection_id: str) -> bool:
        """
        Unregister a connection.

        When no connections remain, the user's membership caches are purged.

        Returns:
            True if the user went offline.
        """
        if not self._connections.discard(user_id, connection_id):
            return False

        for conversation_id in self._conversations.pop(user_id):
            self._members.discard(conversation_id, user_id)
        logger.debug(f"User {user_id} has no connections left; memberships evicted")
        return True

    # =========================================================================
    # Memberships
    # =========================================================================

    def load_memberships(self, user_id: int, conversation_ids: Iterable[int]) -> None:
        """Cache memberships loaded from the store for an online user."""
        conversation_ids = list(conversation_ids)
        self._conversations.update(user_id, conversation_ids)
        for conversation_id in conversation_ids:
            self._members.add(conversation_id, user_id)

    def join_conversation(self, user_id: int, conversation_id: int) -> None:
        self._conversations.add(user_id, conversation_id)
        self._members.add(conversation_id, user_id)

    def leave_conversation(self, user_id: int, conversation_id: int) -> None:
        self._conversations.discard(user_id, conversation_id)
        self._members.discard(conversation_id, user_id)

    def is_member(self, user_id: int, conversation_id: int) -> bool:
        return self._conversations.contains(user_id, conversation_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_online_users(self) -> set[int]:
        return self._connections.keys()

    def is_user_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def get_conversation_members(self, conversation_id: int) -> set[int]:
        """Online users currently cached as members of the conversation."""
        return self._members.get(conversation_id)

    def get_stats(self) -> dict[str, int]:
        return {
            "online_users": len(self._connections.keys()),
            "total_sessions": self._connections.total_values(),
            "active_conversations": len(self._members.keys()),
        }


presence_registry = PresenceRegistry(
    shard_count=getattr(settings, "CHAT_PRESENCE_SHARDS", PRESENCE_CONFIG.DEFAULT_SHARDS)
)
