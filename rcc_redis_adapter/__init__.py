"""
rcc-redis-adapter -- capability adapter for ``redis-py`` clients.

Gives Redis clients a stable surface for connection-state inspection,
lifecycle events and cluster redirect handling, so code that needs "a
key-value store client" does not depend on ``redis-py``'s API shape.

Quick start
-----------
::

    import redis
    from rcc_redis_adapter import create_client, is_moved_error, resolve_host_and_port

    client = create_client({"host": "127.0.0.1", "port": 7000})
    print(client.resolve_host_and_port())
    try:
        client.get("key")
    except redis.exceptions.ResponseError as err:
        if is_moved_error(err):
            host, port = resolve_host_and_port(err)
    client.close()
"""

from rcc_redis_adapter.capabilities import (
    CAPABILITIES,
    EVENT_CLIENT_ERROR,
    EVENT_CLOSE,
    EVENT_CONNECT,
    EVENT_END,
    EVENT_ERROR,
    EVENT_READY,
    EVENT_RECONNECTING,
    EVENTS,
    ensure_capabilities,
)
from rcc_redis_adapter.client import AdaptedRedis, create_client
from rcc_redis_adapter.exceptions import (
    InvalidArgumentError,
    MalformedRedirectMessageError,
    RedisAdapterError,
)
from rcc_redis_adapter.options import (
    DEFAULT_REDIS_HOST,
    DEFAULT_REDIS_PORT,
    ConnectionOptions,
)
from rcc_redis_adapter.redirects import (
    Redirect,
    is_ask_error,
    is_moved_error,
    parse_redirect,
    reply_error_code,
    resolve_host_and_port,
)
from rcc_redis_adapter.registry import (
    delete_client_function,
    get_client_function,
    set_client_function,
)

__all__ = [
    "create_client",
    "AdaptedRedis",
    "ensure_capabilities",
    "CAPABILITIES",
    "EVENTS",
    "EVENT_CONNECT",
    "EVENT_READY",
    "EVENT_RECONNECTING",
    "EVENT_ERROR",
    "EVENT_CLIENT_ERROR",
    "EVENT_END",
    "EVENT_CLOSE",
    "is_moved_error",
    "is_ask_error",
    "reply_error_code",
    "resolve_host_and_port",
    "parse_redirect",
    "Redirect",
    "get_client_function",
    "set_client_function",
    "delete_client_function",
    "ConnectionOptions",
    "DEFAULT_REDIS_HOST",
    "DEFAULT_REDIS_PORT",
    "RedisAdapterError",
    "InvalidArgumentError",
    "MalformedRedirectMessageError",
]

__version__ = "0.1.0"
