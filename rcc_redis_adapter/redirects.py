"""Cluster redirect detection and resolution.

A Redis Cluster node answers a command for a key it does not own with a
reply error such as::

    MOVED 14190 10.0.0.5:7000

meaning "slot 14190 now lives on 10.0.0.5:7000".  ``ASK`` replies have the
same shape but only redirect a single command during slot migration.

The helpers in this module classify an arbitrary error value by its protocol
error code, never by searching the message for a word, and extract the new
node's address.  Following the redirect is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import redis

from rcc_redis_adapter.exceptions import (
    InvalidArgumentError,
    MalformedRedirectMessageError,
)

logger = logging.getLogger(__name__)

MOVED = "MOVED"
ASK = "ASK"

# redis-py strips the code from replies it maps to a dedicated class, so the
# code has to be recovered from the class.  Subclasses come before bases.
_CODES_BY_CLASS: Tuple[Tuple[type, str], ...] = (
    (redis.exceptions.MovedError, MOVED),
    (redis.exceptions.AskError, ASK),
    (redis.exceptions.TryAgainError, "TRYAGAIN"),
    (redis.exceptions.MasterDownError, "MASTERDOWN"),
    (redis.exceptions.ClusterDownError, "CLUSTERDOWN"),
    (redis.exceptions.ReadOnlyError, "READONLY"),
    (redis.exceptions.NoScriptError, "NOSCRIPT"),
    (redis.exceptions.ExecAbortError, "EXECABORT"),
)


@dataclass(frozen=True)
class Redirect:
    """Where a redirected command should be sent instead."""

    kind: str
    slot: Optional[int]
    host: str
    port: str

    @property
    def address(self) -> Tuple[str, str]:
        return self.host, self.port


def reply_error_code(error: Any) -> Optional[str]:
    """Return the protocol error code of a Redis reply error.

    Parameters
    ----------
    error : Any
        Any value, typically an exception raised by a client command.

    Returns
    -------
    str or None
        The code (``"MOVED"``, ``"ERR"``, ``"WRONGTYPE"``...) when ``error``
        is a ``redis.exceptions.ResponseError``; ``None`` for anything else,
        including reply errors whose message carries no code.
    """
    if not isinstance(error, redis.exceptions.ResponseError):
        return None

    # redis-py 8 records the parsed code as ``status_code``
    for attr in ("code", "status_code"):
        code = getattr(error, attr, None)
        if isinstance(code, str) and code:
            return code

    for cls, cls_code in _CODES_BY_CLASS:
        if isinstance(error, cls):
            return cls_code

    parts = _message_of(error).split(None, 1)
    if parts and parts[0].isupper():
        return parts[0]
    return None


def is_moved_error(error: Any) -> bool:
    """Return ``True`` if ``error`` is a ``MOVED`` reply error.

    Never raises, whatever ``error`` is.
    """
    return reply_error_code(error) == MOVED


def is_ask_error(error: Any) -> bool:
    """Return ``True`` if ``error`` is an ``ASK`` reply error."""
    return reply_error_code(error) == ASK


def resolve_host_and_port(moved_error: Any) -> Tuple[str, str]:
    """Extract the new node's host and port from a ``MOVED`` reply error.

    Parameters
    ----------
    moved_error : redis.exceptions.ResponseError
        An error for which :func:`is_moved_error` is true.

    Returns
    -------
    tuple of (str, str)
        The new host and port.

    Raises
    ------
    InvalidArgumentError
        If ``moved_error`` is not a ``MOVED`` reply error.
    MalformedRedirectMessageError
        If the reply does not end with a ``host:port`` address.

    Examples
    --------
    >>> err = redis.exceptions.ResponseError("MOVED 14190 127.0.0.1:6379")
    >>> resolve_host_and_port(err)
    ('127.0.0.1', '6379')
    """
    if not is_moved_error(moved_error):
        raise InvalidArgumentError(
            f'Unexpected Redis "moved" reply error - {moved_error!r}'
        )
    return _target_of(moved_error)


def parse_redirect(error: Any) -> Redirect:
    """Decode a ``MOVED`` or ``ASK`` reply error into a :class:`Redirect`.

    Raises
    ------
    InvalidArgumentError
        If ``error`` is neither a ``MOVED`` nor an ``ASK`` reply error.
    MalformedRedirectMessageError
        If the reply does not end with a ``host:port`` address.
    """
    code = reply_error_code(error)
    if code not in (MOVED, ASK):
        raise InvalidArgumentError(f"Not a cluster redirect reply error - {error!r}")

    host, port = _target_of(error)
    redirect = Redirect(kind=code, slot=_slot_of(error), host=host, port=port)
    logger.debug("Resolved %s redirect to %s:%s (slot %s)", code, host, port, redirect.slot)
    return redirect


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _message_of(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    return str(error)


def _target_of(error: BaseException) -> Tuple[str, str]:
    # redis-py's AskError/MovedError already split the address
    host = getattr(error, "host", None)
    port = getattr(error, "port", None)
    if isinstance(host, str) and host and port is not None:
        return _unbracket(host), str(port)

    message = _message_of(error)
    address = message[message.rfind(" ") + 1:]
    return _split_address(address, message)


def _split_address(address: str, message: str) -> Tuple[str, str]:
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    else:
        host, _, port = address.rpartition(":")

    if not host or not port.isdigit():
        raise MalformedRedirectMessageError(
            f"Cannot resolve host and port from redirect reply {message!r}"
        )
    return host, port


def _slot_of(error: BaseException) -> Optional[int]:
    slot = getattr(error, "slot_id", None)
    if isinstance(slot, int):
        return slot

    tokens = _message_of(error).split()
    if len(tokens) >= 2 and tokens[-2].isdigit():
        return int(tokens[-2])
    return None


def _unbracket(host: str) -> str:
    if host.startswith("[") and host.endswith("]"):
        return host[1:-1]
    return host
