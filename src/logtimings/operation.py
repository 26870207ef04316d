"""
Timed operations.

An ``Operation`` measures one logical unit of work and writes exactly one log
record describing how it ended: ``completed`` or ``abandoned``, with the
elapsed time in milliseconds. Cancelling an operation writes nothing.

Lifecycle:
    ::

        construct ──► (enrich_with / set_exception)* ──► terminal event
                                                           │
              complete* ─────► write "completed" ──────────┤
              abandon ───────► write "abandoned" ──────────┤
              cancel ────────► no record ──────────────────┤
              dispose ───────► per completion behaviour ───┘
                                                           │
                                                  all scopes released

    The first terminal event sets the completion behaviour to SILENT, so any
    later ``complete``/``abandon``/``dispose`` is a no-op.

Timing:
    - Start and stop are ``time.perf_counter_ns()`` readings, immune to
      wall-clock adjustments.
    - ``elapsed`` is frozen by the first write. ``cancel`` does not freeze
      it: a cancelled measurement keeps advancing if read again.
    - If a warning threshold is set and exceeded, a record below WARNING is
      escalated to WARNING.

Context:
    Construction opens a scope carrying a fresh ``OperationId``. Every scope
    the operation opens (enrichment, result properties) is released on the
    terminal path, whether or not the record was emitted.

Usage:
    with begin_operation(log, "Importing {File}", path) as op:
        rows = import_file(path)
        op.complete_with("Rows", len(rows))
    # Leaving the block without completing logs "abandoned"
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from logtimings.errors import InvalidArgumentError, InvalidStateError
from logtimings.logging.context import scope_values
from logtimings.severity import Severity

if TYPE_CHECKING:
    from logtimings.logging.context import Releasable
    from logtimings.logging.logger import ScopedLogger


class CompletionBehaviour(Enum):
    """What ``dispose`` writes if no terminal call happened first."""

    COMPLETE = "complete"
    ABANDON = "abandon"
    SILENT = "silent"


class OperationProperty(str, Enum):
    """Property names an operation adds to its record and context."""

    ELAPSED = "Elapsed"
    OUTCOME = "Outcome"
    OPERATION_ID = "OperationId"


OUTCOME_COMPLETED = "completed"
OUTCOME_ABANDONED = "abandoned"

_RESULT_SUFFIX = f" {{{OperationProperty.OUTCOME.value}}} in {{{OperationProperty.ELAPSED.value}:.4f}}ms"
_ONE_MILLISECOND = timedelta(milliseconds=1)


def _timestamp() -> int:
    return time.perf_counter_ns()


def _new_operation_id() -> str:
    return str(uuid.uuid4())


class Operation:
    """A timed unit of work that logs its outcome and duration."""

    def __init__(
        self,
        logger: ScopedLogger,
        message_template: str,
        args: Sequence[Any],
        completion_behaviour: CompletionBehaviour,
        completion_level: Severity,
        abandonment_level: Severity,
        warning_threshold: timedelta | None = None,
    ):
        if logger is None:
            raise InvalidArgumentError("logger")
        if message_template is None:
            raise InvalidArgumentError("message_template")
        if args is None:
            raise InvalidArgumentError("args")

        self._logger = logger
        self._message_template = message_template
        self._args = tuple(args)
        self._completion_behaviour = completion_behaviour
        self._completion_level = Severity.parse(completion_level)
        self._abandonment_level = Severity.parse(abandonment_level)
        self._warning_threshold = warning_threshold
        self._exception: BaseException | None = None
        self._stop: int | None = None

        self._scopes: list[Releasable] = [
            logger.begin_scope({OperationProperty.OPERATION_ID.value: _new_operation_id()})
        ]
        self._start = _timestamp()

    # ── State ────────────────────────────────────────────────────

    @property
    def message_template(self) -> str:
        return self._message_template

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    @property
    def completion_behaviour(self) -> CompletionBehaviour:
        return self._completion_behaviour

    @property
    def exception(self) -> BaseException | None:
        return self._exception

    @property
    def elapsed(self) -> timedelta:
        """Time since start, or until the first write once one happened."""
        return timedelta(microseconds=self._elapsed_ns() / 1000)

    def _elapsed_ns(self) -> int:
        stop = self._stop if self._stop is not None else _timestamp()
        return max(stop - self._start, 0)

    # ── Terminal events ──────────────────────────────────────────

    def complete(self, level: Severity | None = None) -> None:
        """Log the operation as completed, at ``level`` or the completion level."""
        if self._completion_behaviour is CompletionBehaviour.SILENT:
            return

        self._write(self._completion_level if level is None else Severity.parse(level), OUTCOME_COMPLETED)

    def complete_with(self, property_name: str, value: Any, level: Severity | None = None) -> None:
        """
        Log the operation as completed with one result property in context.

        Raises:
            InvalidArgumentError: If ``property_name`` is None.
        """
        if property_name is None:
            raise InvalidArgumentError("property_name")

        if self._completion_behaviour is CompletionBehaviour.SILENT:
            return

        self._scopes.append(self._logger.begin_scope({property_name: value}))
        self._write(self._completion_level if level is None else Severity.parse(level), OUTCOME_COMPLETED)

    def abandon(self) -> None:
        """Log the operation as abandoned at the abandonment level."""
        if self._completion_behaviour is CompletionBehaviour.SILENT:
            return

        self._write(self._abandonment_level, OUTCOME_ABANDONED)

    def cancel(self) -> None:
        """Suppress all further logging and release context now."""
        self._completion_behaviour = CompletionBehaviour.SILENT
        self._release_scopes()

    def dispose(self) -> None:
        """Write whatever the completion behaviour calls for, then release context."""
        match self._completion_behaviour:
            case CompletionBehaviour.SILENT:
                pass
            case CompletionBehaviour.ABANDON:
                self._write(self._abandonment_level, OUTCOME_ABANDONED)
            case CompletionBehaviour.COMPLETE:
                self._write(self._completion_level, OUTCOME_COMPLETED)
            case _:
                raise InvalidStateError("Unknown completion behaviour").with_context(
                    completion_behaviour=repr(self._completion_behaviour)
                )

        self._release_scopes()

    def __enter__(self) -> Operation:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    # ── Enrichment ───────────────────────────────────────────────

    def enrich_with(self, *pairs: Any, **properties: Any) -> Operation:
        """
        Add properties to the log context for the rest of the operation.

        Accepts a mapping, ``(name, value)`` tuples, a bare ``name, value``
        pair, or keyword properties. Returns the operation for chaining.
        """
        self._scopes.append(self._logger.begin_scope(scope_values(*pairs, **properties)))
        return self

    def set_exception(self, exception: BaseException | None) -> Operation:
        """Attach an exception to the record this operation eventually writes."""
        self._exception = exception
        return self

    # ── Internals ────────────────────────────────────────────────

    def _write(self, level: Severity, outcome: str) -> None:
        if self._stop is None:
            self._stop = _timestamp()

        self._completion_behaviour = CompletionBehaviour.SILENT

        elapsed_ms = self._elapsed_ns() / 1_000_000

        if (
            self._warning_threshold is not None
            and elapsed_ms > self._warning_threshold / _ONE_MILLISECOND
            and level < Severity.WARNING
        ):
            level = Severity.WARNING

        try:
            if self._logger.is_enabled(level):
                self._logger.log(
                    level,
                    self._message_template + _RESULT_SUFFIX,
                    (*self._args, outcome, elapsed_ms),
                    exception=self._exception,
                )
        finally:
            self._release_scopes()

    def _release_scopes(self) -> None:
        scopes, self._scopes = self._scopes, []
        for scope in reversed(scopes):
            scope.release()

    def __repr__(self) -> str:
        return (
            f"Operation({self._message_template!r}, "
            f"behaviour={self._completion_behaviour.value}, elapsed={self.elapsed})"
        )
