"""
Sample usages of timed operations.

Each function shows one way of driving an operation; ``run_sample`` runs
them all in order. ``logtimings sample`` calls it against a configured
stdlib logger.
"""

from __future__ import annotations

from logtimings.extensions import begin_operation, operation_at, time_operation
from logtimings.logging.logger import ScopedLogger
from logtimings.severity import Severity


def time_a_block(logger: ScopedLogger, user_id: int) -> None:
    with time_operation(logger, "User: {UserId} is saving to database", user_id):
        pass


def abandon_then_complete(logger: ScopedLogger, user_id: int) -> None:
    with begin_operation(logger, "User: {UserId} is removing from database.", user_id) as op:
        op.abandon()

        # Already abandoned, so this writes nothing
        op.complete_with("Username", "jdoe")


def cancel_before_complete(logger: ScopedLogger) -> None:
    with begin_operation(logger, "You will not see this message, because of op.cancel()") as op:
        op.cancel()
        op.complete()


def attach_exception(logger: ScopedLogger) -> None:
    with begin_operation(logger, "Doing some operations...") as op:
        try:
            int("You cannot parse this to number!")
        except ValueError as e:
            op.set_exception(e)

        # Without this the block would end as abandoned
        op.complete()


def trace_level_block(logger: ScopedLogger) -> None:
    with operation_at(logger, Severity.TRACE).time("App is closing..."):
        pass


def run_sample(logger: ScopedLogger, user_id: int = 1) -> None:
    time_a_block(logger, user_id)
    abandon_then_complete(logger, user_id)
    cancel_before_complete(logger)
    attach_exception(logger)
    trace_level_block(logger)
