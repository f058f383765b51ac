"""
Structured error types for wirefilter.

Most of the filtering core never raises: an absent config, sink or node is a
normal state and is answered with defaults or a no-op. The few places where
something genuinely goes wrong (a collaborator failing to create a sink, a
caller handing in a mode that does not exist) raise a typed error from this
module so callers can tell them apart and log them with context.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────┐
        │                  WireFilterError                      │
        │          (category, context, cause)                   │
        ├──────────────────────────────────────────────────────┤
        │                                                       │
        │   SinkError (SINK)          ConfigError (CONFIG)      │
        │        │                         │                    │
        │   SinkCreationError         InvalidConfigError        │
        │    (LIFECYCLE)                                        │
        └──────────────────────────────────────────────────────┘

Examples:
    Raising from a sink factory:

    >>> raise SinkCreationError("surface full").with_context(node_id=7, channel="green")
    Traceback (most recent call last):
    ...
    SinkCreationError: surface full

    Flattening for a log event:

    >>> InvalidConfigError("mode", "xor").to_dict()["category"]
    'CONFIG'

Guardrails:
    ❌ DON'T: Raise for a merely absent registry entry
    ✅ DO: Return defaults or do nothing, absence is recoverable

    ❌ DON'T: Drop the underlying exception when wrapping one
    ✅ DO: Hand it over as cause= so the chain survives
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Which part of the system an error comes from."""

    SINK = "SINK"
    CONFIG = "CONFIG"
    LIFECYCLE = "LIFECYCLE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Where an error happened.

    Attributes:
        node_id: Live node involved, if any
        channel: ``"red"`` or ``"green"`` when a single sink is involved
        metadata: Any further fields, flattened into log output
    """

    node_id: Any = None
    channel: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out = {k: v for k, v in (("node_id", self.node_id), ("channel", self.channel)) if v is not None}
        out.update(self.metadata)
        return out


_CONTEXT_FIELDS = frozenset(f.name for f in fields(ErrorContext)) - {"metadata"}


class WireFilterError(Exception):
    """
    Root of every wirefilter error.

    Subclasses pick their ``default_category``; an explicit ``category=``
    overrides it per instance.

    Examples:
        >>> err = WireFilterError("Something went wrong")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.with_context(node_id=3).context.node_id
        3
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> WireFilterError:
        """
        Fill in context fields and return ``self``, so it chains into ``raise``.

        Known fields (``node_id``, ``channel``) are set directly; anything
        else lands in ``metadata``.
        """
        for key, value in kwargs.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat dict suitable as structlog key/value fields."""
        out: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if context := self.context.to_dict():
            out["context"] = context
        if self.cause is not None:
            out["cause"] = str(self.cause)
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SINK ERRORS
# =============================================================================


class SinkError(WireFilterError):
    """Error from a downstream sink or the collaborator that owns it."""

    default_category = ErrorCategory.SINK


class SinkCreationError(SinkError):
    """A sink could not be created for a node that is being materialized."""

    default_category = ErrorCategory.LIFECYCLE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(WireFilterError):
    """A configuration value could not be used."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """``key`` was given a value outside its allowed set."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"{key!s} cannot be {value!r}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "key": self.key, "value": repr(self.value)}


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "WireFilterError",
    "SinkError",
    "SinkCreationError",
    "ConfigError",
    "InvalidConfigError",
]
