"""
Tests for authentication app.

This package contains test modules for:
- test_services.py: UserDirectory lookups used by chat enrichment

Usage:
    pytest authentication/tests/
"""
