"""Default implementations of the adapter's client capabilities.

:func:`ensure_capabilities` gives a client (or a client class) every method
named in :data:`CAPABILITIES`, installing the defaults below only where the
target does not already have one.  A method the client provides itself is
never replaced.
"""

from __future__ import annotations

import importlib
import logging
import types
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from rcc_redis_adapter.exceptions import InvalidArgumentError
from rcc_redis_adapter.options import (
    DEFAULT_REDIS_HOST,
    DEFAULT_REDIS_PORT,
    ConnectionOptions,
)
from rcc_redis_adapter.registry import (
    delete_client_function,
    get_client_function,
    is_adapted_client,
    set_client_function,
)

logger = logging.getLogger(__name__)

EVENT_CONNECT = "connect"
EVENT_READY = "ready"
EVENT_RECONNECTING = "reconnecting"
EVENT_ERROR = "error"
EVENT_CLIENT_ERROR = "clientError"
EVENT_END = "end"
EVENT_CLOSE = "close"

EVENTS: Tuple[str, ...] = (
    EVENT_CONNECT,
    EVENT_READY,
    EVENT_RECONNECTING,
    EVENT_ERROR,
    EVENT_CLIENT_ERROR,
    EVENT_END,
    EVENT_CLOSE,
)

CAPABILITIES: Tuple[str, ...] = (
    "get_adapter",
    "is_closing",
    "resolve_host_and_port",
    "get_options",
    "add_event_listeners",
    "get_function",
    "set_function",
    "delete_function",
)


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


def get_adapter(self: Any) -> types.ModuleType:
    """Return the adapter package that shimmed this client."""
    return importlib.import_module(__package__)


def is_closing(self: Any) -> bool:
    """Return ``True`` if this client's connection is closing or has closed."""
    return bool(getattr(self, "closing", False))


def get_options(self: Any) -> Optional[ConnectionOptions]:
    """Return the options this client was constructed with."""
    return getattr(self, "options", None)


def resolve_host_and_port(self: Any) -> Tuple[str, Any]:
    """Resolve the host and port of this client.

    The options negotiated by the live connection win over the
    construction-time options, which win over the adapter defaults.
    """
    for record in (getattr(self, "connection_options", None), getattr(self, "options", None)):
        if record is not None:
            return _host_and_port(record)
    return DEFAULT_REDIS_HOST, DEFAULT_REDIS_PORT


def add_event_listeners(
    self: Any,
    on_connect: Optional[Callable[..., Any]] = None,
    on_ready: Optional[Callable[..., Any]] = None,
    on_reconnecting: Optional[Callable[..., Any]] = None,
    on_error: Optional[Callable[..., Any]] = None,
    on_client_error: Optional[Callable[..., Any]] = None,
    on_end: Optional[Callable[..., Any]] = None,
    on_close: Optional[Callable[..., Any]] = None,
) -> None:
    """Subscribe the given callables to this client's lifecycle events.

    Arguments that are not callable, ``None`` included, are skipped.

    Raises
    ------
    InvalidArgumentError
        If the client has no ``on(event, listener)`` subscription method.
    """
    subscribe = getattr(self, "on", None)
    if not callable(subscribe):
        raise InvalidArgumentError(
            f"{type(self).__name__} has no 'on' subscription method to add event listeners with"
        )
    listeners = (on_connect, on_ready, on_reconnecting, on_error, on_client_error, on_end, on_close)
    for event, listener in zip(EVENTS, listeners):
        if callable(listener):
            subscribe(event, listener)


# Adapted clients dispatch through the shared registry; any other client class
# is patched directly, since its class is what all its instances share.


def get_function(self: Any, name: str) -> Optional[Callable[..., Any]]:
    """Return the function shared by all clients under ``name``."""
    if is_adapted_client(self):
        return get_client_function(name)
    return getattr(type(self), name, None)


def set_function(self: Any, name: str, fn: Callable[..., Any]) -> None:
    """Install ``fn`` as method ``name`` of every client of this kind."""
    if is_adapted_client(self):
        set_client_function(name, fn)
        return
    if not callable(fn):
        raise InvalidArgumentError(
            f"Function set as {name!r} must be callable, got {type(fn).__name__}"
        )
    setattr(type(self), name, fn)
    logger.info("Set client function %r on %s", name, type(self).__name__)


def delete_function(self: Any, name: str) -> None:
    """Remove method ``name`` from every client of this kind."""
    if is_adapted_client(self):
        delete_client_function(name)
        return
    if name in vars(type(self)):
        delattr(type(self), name)
        logger.info("Deleted client function %r from %s", name, type(self).__name__)


_DEFAULTS: Dict[str, Callable[..., Any]] = {
    "get_adapter": get_adapter,
    "is_closing": is_closing,
    "resolve_host_and_port": resolve_host_and_port,
    "get_options": get_options,
    "add_event_listeners": add_event_listeners,
    "get_function": get_function,
    "set_function": set_function,
    "delete_function": delete_function,
}


def ensure_capabilities(target: Any) -> Any:
    """Install the default of every capability ``target`` lacks.

    Parameters
    ----------
    target : object or type
        A client instance, or a class whose instances should all gain the
        capabilities.  Instances receive methods bound to themselves.

    Returns
    -------
    object or type
        ``target`` itself.
    """
    is_class = isinstance(target, type)
    for name in CAPABILITIES:
        if getattr(target, name, None) is not None:
            continue
        fn = _DEFAULTS[name]
        setattr(target, name, fn if is_class else types.MethodType(fn, target))
        logger.debug("Installed default %r on %r", name, target)
    return target


def _host_and_port(record: Any) -> Tuple[str, Any]:
    if isinstance(record, (Mapping, ConnectionOptions)):
        host, port = record.get("host"), record.get("port")
    else:
        host, port = getattr(record, "host", None), getattr(record, "port", None)
    return (
        DEFAULT_REDIS_HOST if host is None else host,
        DEFAULT_REDIS_PORT if port is None else port,
    )
