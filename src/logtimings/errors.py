"""
Structured error types for logtimings.

Two things can go wrong inside the timing layer, and they are kept apart:

- **Argument errors:** a caller passed ``None`` where a logger, message
  template, argument sequence or property name is required, or named a
  severity that does not exist. Raised synchronously at the offending call.
- **State errors:** an operation's completion behaviour holds a value outside
  its three variants. This indicates a bug in logtimings itself.

Exceptions attached to an operation with ``set_exception`` are not part of
this hierarchy. They are carried into the log record as data and are never
inspected or re-raised.

Usage:
    from logtimings.errors import InvalidArgumentError

    if logger is None:
        raise InvalidArgumentError("logger")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and routing."""

    ARGUMENT = "ARGUMENT"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


class TimingsError(Exception):
    """
    Base exception for all logtimings errors.

    Subclasses set ``default_category``; callers may attach extra metadata
    with ``with_context`` before raising.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimingsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InvalidStateError("bad state").with_context(behaviour="x")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class InvalidArgumentError(TimingsError, ValueError):
    """A required argument was absent or unusable."""

    default_category = ErrorCategory.ARGUMENT

    def __init__(self, argument: str, message: str | None = None, **kwargs: Any):
        self.argument = argument
        super().__init__(message or f"Argument must not be None: {argument}", **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["argument"] = self.argument
        return result


class InvalidStateError(TimingsError, RuntimeError):
    """An internal invariant was violated."""

    default_category = ErrorCategory.INTERNAL
