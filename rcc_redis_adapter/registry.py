"""Process-wide table of extra client methods.

Functions registered here become methods of every
:class:`~rcc_redis_adapter.client.AdaptedRedis` instance that does not
already provide the name itself.  The table is meant to be filled once at
start-up, before any client traffic; writes are serialized and reads never
take the lock.

:meth:`FunctionRegistry.names` and :meth:`FunctionRegistry.clear` exist for
inspection and for resetting the table, e.g. between test cases.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from rcc_redis_adapter.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Named functions shared by all adapted clients."""

    def __init__(self) -> None:
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[Callable[..., Any]]:
        return self._functions.get(name)

    def set(self, name: str, fn: Callable[..., Any]) -> None:
        """Register ``fn`` under ``name``, replacing any earlier entry.

        ``fn`` receives the client as its first argument when called.
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Invalid function name: {name!r}")
        if not callable(fn):
            raise InvalidArgumentError(
                f"Function registered as {name!r} must be callable, got {type(fn).__name__}"
            )
        with self._lock:
            functions = dict(self._functions)
            functions[name] = fn
            self._functions = functions
        logger.info("Registered client function %r", name)

    def delete(self, name: str) -> Optional[Callable[..., Any]]:
        """Remove ``name`` and return the function it held, if any."""
        with self._lock:
            if name not in self._functions:
                return None
            functions = dict(self._functions)
            removed = functions.pop(name)
            self._functions = functions
        logger.info("Removed client function %r", name)
        return removed

    def names(self) -> List[str]:
        """Return the registered names, sorted."""
        return sorted(self._functions)

    def clear(self) -> None:
        """Drop every registration, e.g. between test cases."""
        with self._lock:
            self._functions = {}


registry = FunctionRegistry()


def get_client_function(name: str) -> Optional[Callable[..., Any]]:
    """Return the function every adapted client exposes as ``name``.

    The client class's own attribute comes first, as it does when a client
    dispatches the call; then the registered function, or ``None``.
    """
    native = getattr(_client_class(), name, None)
    if native is not None:
        return native
    return registry.get(name)


def set_client_function(name: str, fn: Callable[..., Any]) -> None:
    """Register ``fn`` as method ``name`` of every adapted client."""
    if hasattr(_client_class(), name):
        logger.warning(
            "Client function %r is shadowed by a native client method and will not be dispatched",
            name,
        )
    registry.set(name, fn)


def delete_client_function(name: str) -> None:
    """Unregister method ``name``; a no-op when nothing is registered."""
    registry.delete(name)


def is_adapted_client(client: Any) -> bool:
    """Return ``True`` if ``client`` dispatches through this registry."""
    return isinstance(client, _client_class())


def _client_class() -> type:
    from rcc_redis_adapter.client import AdaptedRedis

    return AdaptedRedis
