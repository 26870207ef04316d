"""
Entry points for timed operations.

Logger-level helpers:
- ``time_operation``: with-block that logs "completed" when it ends
- ``begin_operation``: operation that logs "abandoned" unless completed
- ``operation_at``: choose levels and a warning threshold up front
- ``timed``: decorator form of ``begin_operation``

Operation-level helpers:
- ``set_exception_and_rethrow``: attach an exception inside an ``except``
  filter and let it propagate
- ``complete_with_properties`` / ``abandon_with_properties``: enrich, then end
- ``abandon_with_exception``: attach an exception, then abandon

Every ``logger`` argument accepts a ``ScopedLogger``, a stdlib
``logging.Logger`` or a logger name.

Usage:
    with time_operation(__name__, "Saving user {UserId}", user_id):
        save(user)

    with begin_operation(__name__, "Removing user {UserId}", user_id) as op:
        remove(user)
        op.complete()

    @timed("Rebuilding index {Index}")
    def rebuild(index): ...
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from logtimings.errors import InvalidArgumentError
from logtimings.levelled import LevelledOperation
from logtimings.logging.logger import ScopedLogger, get_logger
from logtimings.operation import CompletionBehaviour, Operation
from logtimings.settings import get_settings
from logtimings.severity import Severity

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])

LoggerLike = ScopedLogger | logging.Logger | str


def time_operation(logger: LoggerLike, message_template: str, *args: Any) -> Operation:
    """Begin an operation that logs as completed when its block ends."""
    return _default_operation(logger, message_template, args, CompletionBehaviour.COMPLETE)


def begin_operation(logger: LoggerLike, message_template: str, *args: Any) -> Operation:
    """Begin an operation that logs as abandoned unless explicitly completed."""
    return _default_operation(logger, message_template, args, CompletionBehaviour.ABANDON)


def _default_operation(
    logger: LoggerLike,
    message_template: str,
    args: tuple[Any, ...],
    behaviour: CompletionBehaviour,
) -> Operation:
    settings = get_settings()
    return Operation(
        get_logger(logger),
        message_template,
        args,
        behaviour,
        settings.completion_level,
        settings.abandonment_level,
        settings.warning_threshold,
    )


def operation_at(
    logger: LoggerLike,
    completion: Severity | str | int,
    abandonment: Severity | str | int | None = None,
    warning_threshold: timedelta | float | None = None,
) -> LevelledOperation:
    """
    Bind levels and an optional warning threshold for later operations.

    Args:
        logger: Target logger
        completion: Level for completed records
        abandonment: Level for abandoned records (defaults to ``completion``)
        warning_threshold: ``timedelta`` or milliseconds; records slower than
            this are raised to WARNING if they were below it

    Returns:
        A bound ``LevelledOperation``, or ``LevelledOperation.NONE`` when
        neither level is enabled on the logger.

    Raises:
        InvalidArgumentError: If ``logger`` is None or a level is unknown.
    """
    if logger is None:
        raise InvalidArgumentError("logger")

    target = get_logger(logger)
    completion_level = Severity.parse(completion)
    abandonment_level = completion_level if abandonment is None else Severity.parse(abandonment)

    if not target.is_enabled(completion_level) and (
        abandonment_level == completion_level or not target.is_enabled(abandonment_level)
    ):
        return LevelledOperation.NONE

    return LevelledOperation(target, completion_level, abandonment_level, _as_threshold(warning_threshold))


def _as_threshold(value: timedelta | float | None) -> timedelta | None:
    if value is None or isinstance(value, timedelta):
        return value
    return timedelta(milliseconds=value)


def timed(
    message_template: str | None = None,
    *,
    logger: LoggerLike | None = None,
    level: Severity | str | int | None = None,
    warning_threshold: timedelta | float | None = None,
) -> Callable[[F], F]:
    """
    Decorator that wraps each call in an operation.

    A call that returns logs "completed"; a call that raises attaches the
    exception, logs "abandoned" and re-raises.

    Usage:
        @timed("Compute summaries")
        def compute_summaries(records):
            return aggregate(records)

        # Or use the function's qualified name as the template
        @timed(level="debug", warning_threshold=250)
        def compute_summaries(records):
            return aggregate(records)

    Args:
        message_template: Template (defaults to the function's qualified name)
        logger: Target logger (defaults to the function's module logger)
        level: Completion level; when given, ``operation_at`` picks the levels
        warning_threshold: Escalation threshold, used together with ``level``
    """

    def decorator(func: F) -> F:
        template = message_template or func.__qualname__
        target = logger if logger is not None else func.__module__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if level is None:
                op = begin_operation(target, template)
            else:
                op = operation_at(target, level, warning_threshold=warning_threshold).begin(template)

            with op:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    abandon_with_exception(op, e)
                    raise
                op.complete()
                return result

        return wrapper  # type: ignore

    return decorator


def set_exception_and_rethrow(operation: Operation, exception: BaseException) -> bool:
    """
    Attach ``exception`` to the operation and return False.

    Meant for conditional ``except`` handling: attach, then re-raise the
    original exception unchanged.

    Usage:
        with begin_operation(log, "Importing") as op:
            try:
                run_import()
                op.complete()
            except Exception as e:
                if not set_exception_and_rethrow(op, e):
                    raise
    """
    operation.set_exception(exception)
    return False


def complete_with_properties(operation: Operation, *pairs: Any, **properties: Any) -> None:
    """Enrich the log context, then complete the operation."""
    operation.enrich_with(*pairs, **properties).complete()


def abandon_with_properties(operation: Operation, *pairs: Any, **properties: Any) -> None:
    """Enrich the log context, then abandon the operation."""
    operation.enrich_with(*pairs, **properties).abandon()


def abandon_with_exception(operation: Operation, exception: BaseException) -> None:
    """Attach an exception, then abandon the operation."""
    operation.set_exception(exception).abandon()
