"""Adapted Redis client and its factory.

:class:`AdaptedRedis` extends the standard ``redis.Redis`` client with what
the adapter's capabilities rely on: a closing flag, the construction-time and
negotiated connection options, and lifecycle events.  All standard Redis
commands remain available unchanged.

Example::

    import redis
    from rcc_redis_adapter import create_client, is_moved_error, resolve_host_and_port

    client = create_client({"host": "localhost", "port": 7000})
    client.add_event_listeners(on_error=lambda err: print("error", err))
    try:
        client.get("key")
    except redis.exceptions.ResponseError as err:
        if is_moved_error(err):
            host, port = resolve_host_and_port(err)
"""

from __future__ import annotations

import inspect
import logging
import types
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import redis

from rcc_redis_adapter.capabilities import (
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
from rcc_redis_adapter.exceptions import InvalidArgumentError
from rcc_redis_adapter.options import (
    DEFAULT_REDIS_HOST,
    DEFAULT_REDIS_PORT,
    ConnectionOptions,
)
from rcc_redis_adapter.registry import registry

logger = logging.getLogger(__name__)

_REDIS_INIT_PARAMETERS = inspect.signature(redis.Redis.__init__).parameters
_REDIS_ACCEPTS_ANY_KEYWORD = any(
    p.kind is inspect.Parameter.VAR_KEYWORD for p in _REDIS_INIT_PARAMETERS.values()
)


class AdaptedRedis(redis.Redis):
    """Redis client carrying lifecycle events and connection state.

    Parameters
    ----------
    host : str
        Server hostname.  Defaults to ``"127.0.0.1"``.
    port : int
        Server port.  Defaults to ``6379``.
    **kwargs
        Any other option.  Those ``redis.Redis`` accepts are passed through
        untouched; the rest are only kept in :attr:`options`.

    Events
    ------
    ``connect`` and ``ready`` fire on the first server reply,
    ``error`` when a command fails with a connection or timeout error,
    ``reconnecting`` before the next command after such a failure,
    ``clientError`` when a command is issued on a closed client, and ``end``
    then ``close`` once when the client is closed.  A client that is garbage
    collected without being closed releases its pool silently.

    Methods registered with
    :func:`~rcc_redis_adapter.registry.set_client_function` are available on
    every instance unless the instance or the class defines the same name.
    """

    def __init__(
        self,
        host: str = DEFAULT_REDIS_HOST,
        port: int = DEFAULT_REDIS_PORT,
        **kwargs: Any,
    ) -> None:
        pool = kwargs.get("connection_pool")
        if pool is not None:
            host = pool.connection_kwargs.get("host", host)
            port = pool.connection_kwargs.get("port", port)

        self.closing = False
        self.options = ConnectionOptions(host=host, port=port, extra=dict(kwargs))
        self.connection_options: Optional[ConnectionOptions] = None
        self._listeners: Dict[str, List[Callable[..., Any]]] = {event: [] for event in EVENTS}
        self._connected = False
        self._reconnecting = False
        super().__init__(host=host, port=port, **_transport_kwargs(kwargs))

    def __del__(self) -> None:
        # No listener notifications during garbage collection
        if getattr(self, "closing", True) or "connection_pool" not in vars(self):
            return
        self.closing = True
        redis.Redis.close(self)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if not name.startswith("_"):
            fn = registry.get(name)
            if fn is not None:
                return types.MethodType(fn, self)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # -- events --------------------------------------------------------------

    def on(self, event: str, listener: Callable[..., Any]) -> "AdaptedRedis":
        """Subscribe ``listener`` to ``event``."""
        self._check_event(event)
        self._listeners[event].append(listener)
        return self

    def off(self, event: str, listener: Callable[..., Any]) -> "AdaptedRedis":
        """Unsubscribe ``listener`` from ``event`` if it is subscribed."""
        self._check_event(event)
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)
        return self

    def listeners(self, event: str) -> List[Callable[..., Any]]:
        """Return a copy of the listeners subscribed to ``event``."""
        self._check_event(event)
        return list(self._listeners[event])

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of ``event`` with ``args``.

        Returns ``True`` if there was at least one listener.
        """
        listeners = self.listeners(event)
        logger.debug("Emitting %r to %d listener(s)", event, len(listeners))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    # -- lifecycle -----------------------------------------------------------

    def execute_command(self, *args: Any, **options: Any) -> Any:
        if self.closing:
            exc = redis.exceptions.ConnectionError("Connection is closing or closed")
            self.emit(EVENT_CLIENT_ERROR, exc)
            raise exc

        if self._reconnecting:
            self.emit(EVENT_RECONNECTING)

        try:
            response = super().execute_command(*args, **options)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as exc:
            self._connection_lost(exc)
            raise
        except redis.exceptions.ResponseError:
            # The server replied, so the connection itself is fine
            self._round_trip_completed()
            raise
        self._round_trip_completed()
        return response

    def close(self) -> None:
        """Close the client, emitting ``end`` and ``close`` the first time."""
        already_closing = self.closing
        self.closing = True
        super().close()
        if not already_closing:
            self.emit(EVENT_END)
            self.emit(EVENT_CLOSE)

    # -- internal helpers ----------------------------------------------------

    def _check_event(self, event: str) -> None:
        if event not in self._listeners:
            raise InvalidArgumentError(
                f"Unknown client event {event!r}; expected one of {', '.join(EVENTS)}"
            )

    def _round_trip_completed(self) -> None:
        if self._connected:
            return
        self._connected = True
        self._reconnecting = False
        pool_kwargs = self.connection_pool.connection_kwargs
        self.connection_options = ConnectionOptions(
            host=pool_kwargs.get("host", self.options.host),
            port=pool_kwargs.get("port", self.options.port),
        )
        self.emit(EVENT_CONNECT)
        self.emit(EVENT_READY)

    def _connection_lost(self, exc: Exception) -> None:
        self._connected = False
        self._reconnecting = True
        logger.debug("Connection to %s:%s failed: %s", self.options.host, self.options.port, exc)
        self.emit(EVENT_ERROR, exc)


ensure_capabilities(AdaptedRedis)


def create_client(
    options: Union[ConnectionOptions, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> AdaptedRedis:
    """Create a new adapted Redis client.

    No connection is made here: ``redis-py`` connects on the first command,
    and the outcome is reported through the client's events.

    Parameters
    ----------
    options : ConnectionOptions, mapping or None
        Connection options.  Missing ``host``/``port`` fall back to
        ``127.0.0.1:6379``.  Other fields are kept in the client's options
        and passed to ``redis.Redis`` when it accepts them.
    **overrides
        Options that take precedence over ``options``.

    Returns
    -------
    AdaptedRedis
        A client with every adapter capability available.
    """
    resolved = ConnectionOptions.from_value(options, **overrides)
    client = AdaptedRedis(**resolved.as_kwargs())
    ensure_capabilities(client)
    logger.debug("Created Redis client for %s:%s", resolved.host, resolved.port)
    return client


def _transport_kwargs(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    if _REDIS_ACCEPTS_ANY_KEYWORD:
        return kwargs
    accepted = {name: value for name, value in kwargs.items() if name in _REDIS_INIT_PARAMETERS}
    ignored = sorted(set(kwargs) - set(accepted))
    if ignored:
        logger.debug("Options not recognized by redis.Redis kept but not forwarded: %s", ", ".join(ignored))
    return accepted
