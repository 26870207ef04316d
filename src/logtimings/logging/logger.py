"""
Scoped logger adapters.

Operations talk to a logger through the small ``ScopedLogger`` protocol:
an enabled check, a templated log call, and a way to open context scopes.
``StdlibScopedLogger`` satisfies it on top of a stdlib ``logging.Logger``;
``NullScopedLogger`` satisfies it by doing nothing.

Records emitted through ``StdlibScopedLogger`` carry two extra attributes
for formatters: ``properties`` (the values bound to the template holes,
plus the template itself) and ``scopes`` (the scope context captured at the
moment of the call, so handlers running later or on another thread still see
the right values).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from logtimings.errors import InvalidArgumentError
from logtimings.logging.context import NULL_SCOPE, Releasable, begin_scope, get_scope_context
from logtimings.logging.templates import render
from logtimings.severity import Severity


@runtime_checkable
class ScopedLogger(Protocol):
    """Logger contract used by operations."""

    def is_enabled(self, severity: Severity) -> bool: ...

    def log(
        self,
        severity: Severity,
        template: str,
        args: Sequence[Any] = (),
        exception: BaseException | None = None,
    ) -> None: ...

    def begin_scope(self, values: Any) -> Releasable: ...


class StdlibScopedLogger:
    """``ScopedLogger`` backed by a stdlib ``logging.Logger``."""

    def __init__(self, logger: logging.Logger | str):
        if logger is None:
            raise InvalidArgumentError("logger")
        if isinstance(logger, str):
            logger = logging.getLogger(logger)
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def is_enabled(self, severity: Severity) -> bool:
        severity = Severity.parse(severity)
        if severity is Severity.NONE:
            return False
        return self._logger.isEnabledFor(int(severity))

    def log(
        self,
        severity: Severity,
        template: str,
        args: Sequence[Any] = (),
        exception: BaseException | None = None,
    ) -> None:
        severity = Severity.parse(severity)
        if not self.is_enabled(severity):
            return

        rendered = render(template, args)
        self._logger.log(
            int(severity),
            rendered.message,
            exc_info=exception,
            extra={"properties": rendered.properties, "scopes": get_scope_context()},
        )

    def begin_scope(self, values: Any) -> Releasable:
        return begin_scope(values)

    def __repr__(self) -> str:
        return f"StdlibScopedLogger({self._logger.name!r})"


class NullScopedLogger:
    """``ScopedLogger`` that is never enabled and records nothing."""

    def is_enabled(self, severity: Severity) -> bool:
        return False

    def log(
        self,
        severity: Severity,
        template: str,
        args: Sequence[Any] = (),
        exception: BaseException | None = None,
    ) -> None:
        pass

    def begin_scope(self, values: Any) -> Releasable:
        return NULL_SCOPE


NULL_LOGGER = NullScopedLogger()


# Logger cache
_loggers: dict[str, StdlibScopedLogger] = {}
_logger_lock = threading.Lock()


def get_logger(target: ScopedLogger | logging.Logger | str) -> ScopedLogger:
    """
    Resolve a logger name, stdlib logger or scoped logger to a ``ScopedLogger``.

    Args:
        target: Logger name (typically __name__), a ``logging.Logger``, or
            any object already implementing ``ScopedLogger``.

    Raises:
        InvalidArgumentError: If ``target`` is None or of an unsupported type.
    """
    if target is None:
        raise InvalidArgumentError("logger")
    if isinstance(target, str):
        with _logger_lock:
            if target not in _loggers:
                _loggers[target] = StdlibScopedLogger(target)
            return _loggers[target]
    if isinstance(target, logging.Logger):
        return StdlibScopedLogger(target)
    if isinstance(target, ScopedLogger):
        return target
    raise InvalidArgumentError("logger", f"Unsupported logger type: {type(target).__name__}")
