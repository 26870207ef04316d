"""
Levelled operations.

A ``LevelledOperation`` binds a logger to a completion level, an abandonment
level and an optional warning threshold, and hands out operations with those
settings. Build one with ``operation_at``.

When neither level is enabled on the logger, ``operation_at`` returns the
shared ``LevelledOperation.NONE`` instead. It holds one pre-built, already
silent operation and returns it from every ``begin``/``time`` call, so a
disabled level costs no timestamp, no scope and no identifier.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, ClassVar

from logtimings.errors import InvalidArgumentError
from logtimings.logging.logger import NULL_LOGGER, ScopedLogger
from logtimings.operation import CompletionBehaviour, Operation
from logtimings.severity import Severity


class _InertOperation(Operation):
    """Silent operation shared by every disabled ``LevelledOperation`` call."""

    @property
    def elapsed(self) -> timedelta:
        return timedelta(0)

    def enrich_with(self, *pairs: Any, **properties: Any) -> Operation:
        return self

    def set_exception(self, exception: BaseException | None) -> Operation:
        return self


class LevelledOperation:
    """Operation factory with pre-bound levels and warning threshold."""

    NONE: ClassVar[LevelledOperation]

    def __init__(
        self,
        logger: ScopedLogger,
        completion_level: Severity,
        abandonment_level: Severity,
        warning_threshold: timedelta | None = None,
    ):
        if logger is None:
            raise InvalidArgumentError("logger")

        self._logger: ScopedLogger | None = logger
        self._completion_level = Severity.parse(completion_level)
        self._abandonment_level = Severity.parse(abandonment_level)
        self._warning_threshold = warning_threshold
        self._cached_result: Operation | None = None

    @classmethod
    def _disabled(cls, cached_result: Operation) -> LevelledOperation:
        instance = cls.__new__(cls)
        instance._logger = None
        instance._completion_level = Severity.NONE
        instance._abandonment_level = Severity.NONE
        instance._warning_threshold = None
        instance._cached_result = cached_result
        return instance

    @property
    def is_enabled(self) -> bool:
        return self._cached_result is None

    @property
    def completion_level(self) -> Severity:
        return self._completion_level

    @property
    def abandonment_level(self) -> Severity:
        return self._abandonment_level

    @property
    def warning_threshold(self) -> timedelta | None:
        return self._warning_threshold

    def begin(self, message_template: str, *args: Any) -> Operation:
        """
        Begin an operation that logs as abandoned unless completed.

        If the operation exceeds the warning threshold, a level below
        WARNING is raised to WARNING.

        Raises:
            InvalidArgumentError: If ``message_template`` is None.
        """
        return self._create(message_template, args, CompletionBehaviour.ABANDON)

    def time(self, message_template: str, *args: Any) -> Operation:
        """
        Begin an operation that logs as completed when disposed.

        Intended for ``with`` blocks where the only outcome of interest is
        that the block ran and how long it took.

        Raises:
            InvalidArgumentError: If ``message_template`` is None.
        """
        return self._create(message_template, args, CompletionBehaviour.COMPLETE)

    def _create(
        self,
        message_template: str,
        args: tuple[Any, ...],
        behaviour: CompletionBehaviour,
    ) -> Operation:
        if message_template is None:
            raise InvalidArgumentError("message_template")
        if self._cached_result is not None:
            return self._cached_result

        return Operation(
            self._logger,
            message_template,
            args,
            behaviour,
            self._completion_level,
            self._abandonment_level,
            self._warning_threshold,
        )

    def __repr__(self) -> str:
        if self._cached_result is not None:
            return "LevelledOperation.NONE"
        return (
            f"LevelledOperation(completion={self._completion_level.name}, "
            f"abandonment={self._abandonment_level.name}, "
            f"warning_threshold={self._warning_threshold})"
        )


LevelledOperation.NONE = LevelledOperation._disabled(
    _InertOperation(
        NULL_LOGGER,
        "",
        (),
        CompletionBehaviour.SILENT,
        Severity.CRITICAL,
        Severity.CRITICAL,
    )
)
