"""
Tests for the in-process PresenceRegistry.

Features tested:
- Connection counting per user (first connection / went offline)
- Membership caches in both directions and their eviction
- Join/leave bookkeeping
- Queries and stats
- Concurrent connect/disconnect from many threads
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from chat.presence import PresenceRegistry


class TestConnections:
    """Tests for on_connect() and on_disconnect()."""

    def test_first_connection_is_reported(self, registry):
        assert registry.on_connect(10, "c1") is True
        assert registry.on_connect(10, "c2") is False

    def test_user_offline_only_after_last_connection(self, registry):
        registry.on_connect(10, "c1")
        registry.on_connect(10, "c2")

        assert registry.on_disconnect(10, "c1") is False
        assert registry.is_user_online(10) is True
        assert registry.on_disconnect(10, "c2") is True
        assert registry.is_user_online(10) is False

    def test_disconnect_unknown_connection_is_harmless(self, registry):
        assert registry.on_disconnect(99, "nope") is True
        assert registry.get_online_users() == set()

    def test_invalid_shard_count(self):
        with pytest.raises(ValueError):
            PresenceRegistry(shard_count=0)


class TestMemberships:
    """Tests for membership caching."""

    def test_loaded_memberships_answer_is_member(self, registry):
        registry.on_connect(10, "c1")
        registry.load_memberships(10, [1, 2])

        assert registry.is_member(10, 1) is True
        assert registry.is_member(10, 3) is False
        assert registry.get_conversation_members(2) == {10}

    def test_last_disconnect_purges_both_directions(self, registry):
        """
        Why it matters: After a user's last connection closes, no
        conversation may still route events to them.
        """
        registry.on_connect(10, "c1")
        registry.load_memberships(10, [1, 2, 3])

        registry.on_disconnect(10, "c1")

        assert not any(registry.is_member(10, cid) for cid in (1, 2, 3))
        assert registry.get_conversation_members(1) == set()

    def test_other_users_memberships_survive(self, registry):
        registry.on_connect(10, "c1")
        registry.on_connect(20, "c2")
        registry.load_memberships(10, [1])
        registry.load_memberships(20, [1])

        registry.on_disconnect(10, "c1")

        assert registry.get_conversation_members(1) == {20}

    def test_join_and_leave(self, registry):
        registry.on_connect(10, "c1")

        registry.join_conversation(10, 5)
        assert registry.is_member(10, 5) is True

        registry.leave_conversation(10, 5)
        assert registry.is_member(10, 5) is False
        assert registry.get_conversation_members(5) == set()


class TestQueries:
    """Tests for online queries and stats."""

    def test_stats(self, registry):
        registry.on_connect(10, "c1")
        registry.on_connect(10, "c2")
        registry.on_connect(20, "c3")
        registry.load_memberships(10, [1, 2])
        registry.load_memberships(20, [2])

        assert registry.get_online_users() == {10, 20}
        assert registry.get_stats() == {
            "online_users": 2,
            "total_sessions": 3,
            "active_conversations": 2,
        }


class TestConcurrency:
    """Concurrent mutations from independent connections."""

    def test_parallel_connect_disconnect_leaves_clean_state(self):
        """
        Why it matters: Connection handlers run concurrently; no update
        may be lost and nothing may leak after everyone disconnects.
        """
        registry = PresenceRegistry(shard_count=8)

        def session(user_id):
            for n in range(50):
                connection = f"{user_id}-{n}"
                registry.on_connect(user_id, connection)
                registry.load_memberships(user_id, [user_id % 5, 100])
                registry.on_disconnect(user_id, connection)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(session, range(40)))

        assert registry.get_stats() == {
            "online_users": 0,
            "total_sessions": 0,
            "active_conversations": 0,
        }

    def test_parallel_connects_are_all_counted(self):
        registry = PresenceRegistry(shard_count=4)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: registry.on_connect(n % 10, f"c{n}"), range(200)))

        assert registry.get_stats()["online_users"] == 10
        assert registry.get_stats()["total_sessions"] == 200
