"""
logtimings - timed operations for structured logging.

Wrap a unit of work in an operation and get one log record describing how it
ended (completed or abandoned) and how long it took, with an ``OperationId``
in the log context for its whole lifetime.

Usage:
    from logtimings import begin_operation, operation_at, time_operation

    with time_operation(__name__, "Saving user {UserId}", user_id):
        save(user)

    with begin_operation(__name__, "Removing user {UserId}", user_id) as op:
        remove(user)
        op.complete()

    with operation_at(__name__, "debug", warning_threshold=500).time("Warm cache"):
        warm_cache()
"""

from logtimings.errors import ErrorCategory, InvalidArgumentError, InvalidStateError, TimingsError
from logtimings.extensions import (
    abandon_with_exception,
    abandon_with_properties,
    begin_operation,
    complete_with_properties,
    operation_at,
    set_exception_and_rethrow,
    time_operation,
    timed,
)
from logtimings.levelled import LevelledOperation
from logtimings.operation import (
    OUTCOME_ABANDONED,
    OUTCOME_COMPLETED,
    CompletionBehaviour,
    Operation,
    OperationProperty,
)
from logtimings.settings import TimingsSettings, get_settings
from logtimings.severity import Severity

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "time_operation",
    "begin_operation",
    "operation_at",
    "timed",
    # Operation helpers
    "set_exception_and_rethrow",
    "complete_with_properties",
    "abandon_with_properties",
    "abandon_with_exception",
    # Types
    "Operation",
    "LevelledOperation",
    "CompletionBehaviour",
    "OperationProperty",
    "OUTCOME_COMPLETED",
    "OUTCOME_ABANDONED",
    "Severity",
    # Configuration
    "TimingsSettings",
    "get_settings",
    # Errors
    "TimingsError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ErrorCategory",
]
