"""Connection options and their defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from rcc_redis_adapter.exceptions import InvalidArgumentError

DEFAULT_REDIS_HOST = "127.0.0.1"
DEFAULT_REDIS_PORT = 6379


@dataclass
class ConnectionOptions:
    """Options used to construct a client.

    ``host`` and ``port`` always hold a value; anything else the caller
    supplied is kept in ``extra`` and handed to ``redis.Redis`` untouched.
    """

    host: str = DEFAULT_REDIS_HOST
    port: int = DEFAULT_REDIS_PORT
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(
        cls,
        value: Union["ConnectionOptions", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "ConnectionOptions":
        """Normalize ``value`` into a :class:`ConnectionOptions`.

        Parameters
        ----------
        value : ConnectionOptions, mapping or None
            The caller's options record.  ``None`` means all defaults.
        **overrides
            Fields that take precedence over ``value``.

        Raises
        ------
        InvalidArgumentError
            If ``value`` is neither ``None``, a mapping nor a
            :class:`ConnectionOptions`.
        """
        if value is None:
            merged: Dict[str, Any] = {}
        elif isinstance(value, ConnectionOptions):
            merged = value.as_kwargs()
        elif isinstance(value, Mapping):
            merged = dict(value)
        else:
            raise InvalidArgumentError(
                f"Unsupported connection options type: {type(value).__name__}"
            )
        merged.update(overrides)

        host = merged.pop("host", None)
        port = merged.pop("port", None)
        return cls(
            host=DEFAULT_REDIS_HOST if host is None else host,
            port=DEFAULT_REDIS_PORT if port is None else port,
            extra=merged,
        )

    def as_kwargs(self) -> Dict[str, Any]:
        """Return the keyword arguments for ``redis.Redis``."""
        kwargs = dict(self.extra)
        kwargs["host"] = self.host
        kwargs["port"] = self.port
        return kwargs

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        """Look up an option by name, including the pass-through ones."""
        if name == "host":
            return self.host
        if name == "port":
            return self.port
        return self.extra.get(name, default)
