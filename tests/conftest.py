"""Shared fixtures for the adapter test-suite.

The Redis round trip is replaced by a mock so the tests run without a live
server.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import redis

from rcc_redis_adapter.registry import registry


@pytest.fixture(autouse=True)
def clean_registry():
    """Leave the process-wide function registry empty after every test."""
    yield
    registry.clear()


@pytest.fixture()
def mock_execute():
    """Replace the ``redis.Redis`` round trip with a MagicMock."""
    with patch.object(redis.Redis, "execute_command") as mock_exec:
        yield mock_exec
