"""Shared pytest fixtures for relaycode tests.

Each module is registered as a plugin in ``tests/conftest.py``.
"""
