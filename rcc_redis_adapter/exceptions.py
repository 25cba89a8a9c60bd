"""Exception hierarchy for the Redis client adapter.

Every exception raised by the adapter itself is a subclass of
:class:`RedisAdapterError`.  Errors raised by ``redis-py`` (connection
refused, timeouts, reply errors) are never wrapped: callers see them exactly
as the transport raised them.
"""

from __future__ import annotations


class RedisAdapterError(Exception):
    """Base exception for all adapter errors."""


class InvalidArgumentError(RedisAdapterError, ValueError):
    """Raised when an adapter operation is handed an argument it cannot use,
    e.g. a non-redirect error passed to redirect resolution."""


class MalformedRedirectMessageError(RedisAdapterError, ValueError):
    """Raised when a redirect reply does not carry a ``host:port`` address."""
