"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation, Participant, Message model tests
- test_services.py: Conversation, Participant and Message service tests
- test_presence.py: presence registry tests
- test_broadcast.py: channel layer fan-out tests
- test_protocol.py: frame parsing and event delivery tests
- test_consumers.py: WebSocket gateway tests
- test_views.py: REST API endpoint tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
