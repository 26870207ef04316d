"""Tests for logtimings.operation.

Covers the Operation lifecycle: construction, elapsed time, terminal
writes, cancellation, disposal, enrichment, exceptions and warning
escalation.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from logtimings.errors import InvalidArgumentError, InvalidStateError
from logtimings.operation import (
    OUTCOME_ABANDONED,
    OUTCOME_COMPLETED,
    CompletionBehaviour,
    Operation,
    OperationProperty,
)
from logtimings.severity import Severity
from tests._support import RecordingLogger


def make_operation(
    logger,
    template="Processing {Item}",
    args=("widget",),
    behaviour=CompletionBehaviour.ABANDON,
    completion=Severity.INFORMATION,
    abandonment=Severity.WARNING,
    warning_threshold=None,
) -> Operation:
    return Operation(logger, template, args, behaviour, completion, abandonment, warning_threshold)


# ── Construction ─────────────────────────────────────────────


class TestConstruction:
    def test_none_logger_rejected(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            Operation(None, "t", (), CompletionBehaviour.ABANDON, Severity.INFORMATION, Severity.WARNING)
        assert exc_info.value.argument == "logger"

    def test_none_template_rejected(self, recording_logger):
        with pytest.raises(InvalidArgumentError) as exc_info:
            make_operation(recording_logger, template=None)
        assert exc_info.value.argument == "message_template"

    def test_none_args_rejected(self, recording_logger):
        with pytest.raises(InvalidArgumentError) as exc_info:
            make_operation(recording_logger, args=None)
        assert exc_info.value.argument == "args"

    def test_empty_args_accepted(self, recording_logger):
        op = make_operation(recording_logger, template="Nothing to bind", args=())
        assert op.args == ()

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            Operation(None, "t", (), CompletionBehaviour.ABANDON, Severity.INFORMATION, Severity.WARNING)

    def test_opens_operation_id_scope(self, recording_logger):
        make_operation(recording_logger)
        assert len(recording_logger.scopes) == 1
        values = recording_logger.scopes[0].values
        assert list(values) == [OperationProperty.OPERATION_ID.value]

    def test_operation_ids_are_unique(self, recording_logger):
        make_operation(recording_logger)
        make_operation(recording_logger)
        first, second = (s.values["OperationId"] for s in recording_logger.scopes)
        assert first != second

    def test_no_record_on_construction(self, recording_logger):
        make_operation(recording_logger)
        assert recording_logger.records == []

    def test_levels_accept_names(self, recording_logger, clock):
        op = make_operation(recording_logger, completion="debug")
        op.complete()
        assert recording_logger.records[0].severity is Severity.DEBUG


# ── Elapsed ──────────────────────────────────────────────────


class TestElapsed:
    def test_advances_while_live(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=5)
        first = op.elapsed
        clock.advance(ms=5)
        second = op.elapsed
        assert first == timedelta(milliseconds=5)
        assert second == timedelta(milliseconds=10)

    def test_frozen_after_complete(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=3)
        op.complete()
        clock.advance(ms=100)
        assert op.elapsed == timedelta(milliseconds=3)
        assert op.elapsed == op.elapsed

    def test_frozen_after_abandon(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=2)
        op.abandon()
        clock.advance(ms=50)
        assert op.elapsed == timedelta(milliseconds=2)

    def test_frozen_after_dispose(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=7)
        op.dispose()
        clock.advance(ms=50)
        assert op.elapsed == timedelta(milliseconds=7)

    def test_cancel_does_not_freeze(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=1)
        op.cancel()
        clock.advance(ms=4)
        assert op.elapsed == timedelta(milliseconds=5)

    def test_negative_delta_clamped_to_zero(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.now -= 1_000
        assert op.elapsed == timedelta(0)

    def test_real_clock_is_non_negative(self, recording_logger):
        op = make_operation(recording_logger)
        readings = [op.elapsed for _ in range(5)]
        assert all(r >= timedelta(0) for r in readings)
        assert readings == sorted(readings)


# ── Complete ─────────────────────────────────────────────────


class TestComplete:
    def test_writes_completed_at_completion_level(self, recording_logger, clock):
        op = make_operation(recording_logger)
        clock.advance(ms=12.5)
        op.complete()

        (record,) = recording_logger.records
        assert record.severity is Severity.INFORMATION
        assert record.outcome == OUTCOME_COMPLETED
        assert record.elapsed_ms == pytest.approx(12.5)

    def test_template_and_args_extended(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()

        (record,) = recording_logger.records
        assert record.template == "Processing {Item} {Outcome} in {Elapsed:.4f}ms"
        assert record.args == ("widget", "completed", 0.0)

    def test_explicit_level(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete(Severity.DEBUG)
        assert recording_logger.records[0].severity is Severity.DEBUG

    def test_second_complete_is_noop(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        op.complete()
        op.complete(Severity.ERROR)
        assert len(recording_logger.records) == 1

    def test_behaviour_silent_after_write(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        assert op.completion_behaviour is CompletionBehaviour.SILENT

    def test_disabled_level_still_releases_scopes(self, clock):
        logger = RecordingLogger(minimum=Severity.ERROR)
        op = make_operation(logger)
        op.enrich_with("Tenant", "acme")
        op.complete()

        assert logger.records == []
        assert all(s.release_count == 1 for s in logger.scopes)
        assert op.completion_behaviour is CompletionBehaviour.SILENT


class TestCompleteWith:
    def test_property_in_context_at_write(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete_with("Rows", 42)

        (record,) = recording_logger.records
        assert record.context["Rows"] == 42
        assert "OperationId" in record.context
        assert record.outcome == OUTCOME_COMPLETED

    def test_property_scope_released(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete_with("Rows", 42)
        assert len(recording_logger.scopes) == 2
        assert recording_logger.open_scopes == []

    def test_explicit_level(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete_with("Rows", 1, Severity.ERROR)
        assert recording_logger.records[0].severity is Severity.ERROR

    def test_none_property_name_rejected(self, recording_logger):
        op = make_operation(recording_logger)
        with pytest.raises(InvalidArgumentError) as exc_info:
            op.complete_with(None, 1)
        assert exc_info.value.argument == "property_name"

    def test_none_property_name_rejected_even_when_silent(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        with pytest.raises(InvalidArgumentError):
            op.complete_with(None, 1)

    def test_silent_does_not_open_scope(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.abandon()
        op.complete_with("Rows", 1)
        assert len(recording_logger.scopes) == 1
        assert len(recording_logger.records) == 1


# ── Abandon ──────────────────────────────────────────────────


class TestAbandon:
    def test_writes_abandoned_at_abandonment_level(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.abandon()

        (record,) = recording_logger.records
        assert record.severity is Severity.WARNING
        assert record.outcome == OUTCOME_ABANDONED

    def test_abandon_after_complete_is_noop(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        op.abandon()
        assert [r.outcome for r in recording_logger.records] == [OUTCOME_COMPLETED]

    def test_complete_after_abandon_is_noop(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.abandon()
        op.complete()
        assert [r.outcome for r in recording_logger.records] == [OUTCOME_ABANDONED]


# ── Cancel ───────────────────────────────────────────────────


class TestCancel:
    def test_cancel_then_dispose_writes_nothing(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.enrich_with(Tenant="acme")
        op.set_exception(RuntimeError("boom"))
        op.cancel()
        op.dispose()
        assert recording_logger.records == []

    def test_cancel_releases_scopes_immediately(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.enrich_with(Tenant="acme")
        op.cancel()
        assert recording_logger.open_scopes == []
        assert all(s.release_count == 1 for s in recording_logger.scopes)

    def test_terminal_calls_after_cancel_are_noops(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.cancel()
        op.complete()
        op.complete_with("Rows", 1)
        op.abandon()
        assert recording_logger.records == []
        assert op.completion_behaviour is CompletionBehaviour.SILENT

    def test_cancel_after_complete_keeps_record(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        op.cancel()
        assert len(recording_logger.records) == 1


# ── Dispose ──────────────────────────────────────────────────


class TestDispose:
    def test_abandon_behaviour_logs_abandoned(self, recording_logger, clock):
        with make_operation(recording_logger, behaviour=CompletionBehaviour.ABANDON):
            pass

        (record,) = recording_logger.records
        assert record.outcome == OUTCOME_ABANDONED
        assert record.severity is Severity.WARNING

    def test_complete_behaviour_logs_completed(self, recording_logger, clock):
        with make_operation(recording_logger, behaviour=CompletionBehaviour.COMPLETE):
            clock.advance(ms=1)

        (record,) = recording_logger.records
        assert record.outcome == OUTCOME_COMPLETED
        assert record.severity is Severity.INFORMATION
        assert record.elapsed_ms >= 0

    def test_silent_behaviour_logs_nothing(self, recording_logger, clock):
        with make_operation(recording_logger, behaviour=CompletionBehaviour.SILENT):
            pass
        assert recording_logger.records == []
        assert recording_logger.open_scopes == []

    def test_dispose_after_complete_is_noop(self, recording_logger, clock):
        with make_operation(recording_logger) as op:
            op.complete()
        assert len(recording_logger.records) == 1

    def test_dispose_twice(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.dispose()
        op.dispose()
        assert len(recording_logger.records) == 1
        assert recording_logger.scopes[0].release_count == 1

    def test_exception_in_block_propagates(self, recording_logger, clock):
        with pytest.raises(KeyError):
            with make_operation(recording_logger):
                raise KeyError("missing")
        assert recording_logger.records[0].outcome == OUTCOME_ABANDONED

    def test_unknown_behaviour_raises_state_error(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op._completion_behaviour = "bogus"
        with pytest.raises(InvalidStateError):
            op.dispose()

    def test_enter_returns_operation(self, recording_logger):
        op = make_operation(recording_logger)
        with op as entered:
            assert entered is op


# ── Enrichment ───────────────────────────────────────────────


class TestEnrichWith:
    def test_returns_self(self, recording_logger):
        op = make_operation(recording_logger)
        assert op.enrich_with(Tenant="acme") is op

    def test_one_scope_per_call(self, recording_logger):
        op = make_operation(recording_logger)
        op.enrich_with({"A": 1, "B": 2}).enrich_with(("C", 3)).enrich_with("D", 4)
        assert [s.values for s in recording_logger.scopes[1:]] == [
            {"A": 1, "B": 2},
            {"C": 3},
            {"D": 4},
        ]

    def test_pairs_and_keywords(self, recording_logger):
        op = make_operation(recording_logger)
        op.enrich_with([("A", 1), ("B", 2)], C=3)
        assert recording_logger.scopes[-1].values == {"A": 1, "B": 2, "C": 3}

    def test_later_scope_shadows_earlier(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.enrich_with(Stage="read").enrich_with(Stage="write")
        op.complete()
        assert recording_logger.records[0].context["Stage"] == "write"

    def test_all_scopes_released_exactly_once(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.enrich_with(A=1).enrich_with(B=2)
        op.complete_with("Result", "ok")
        op.dispose()
        assert len(recording_logger.scopes) == 4
        assert [s.release_count for s in recording_logger.scopes] == [1, 1, 1, 1]


class TestSetException:
    def test_returns_self(self, recording_logger):
        op = make_operation(recording_logger)
        assert op.set_exception(ValueError("x")) is op

    def test_exception_attached_to_completed_record(self, recording_logger, clock):
        error = ValueError("bad input")
        op = make_operation(recording_logger)
        op.set_exception(error).complete()

        (record,) = recording_logger.records
        assert record.exception is error
        assert record.outcome == OUTCOME_COMPLETED

    def test_exception_attached_to_disposal_record(self, recording_logger, clock):
        error = RuntimeError("boom")
        with make_operation(recording_logger) as op:
            op.set_exception(error)
        assert recording_logger.records[0].exception is error
        assert recording_logger.records[0].outcome == OUTCOME_ABANDONED

    def test_no_exception_by_default(self, recording_logger, clock):
        op = make_operation(recording_logger)
        op.complete()
        assert recording_logger.records[0].exception is None


# ── Warning threshold ────────────────────────────────────────


class TestWarningThreshold:
    def test_escalates_completion_when_exceeded(self, recording_logger, clock):
        op = make_operation(recording_logger, warning_threshold=timedelta(milliseconds=100))
        clock.advance(ms=150)
        op.complete()
        assert recording_logger.records[0].severity is Severity.WARNING

    def test_not_escalated_below_threshold(self, recording_logger, clock):
        op = make_operation(recording_logger, warning_threshold=timedelta(milliseconds=100))
        clock.advance(ms=50)
        op.complete()
        assert recording_logger.records[0].severity is Severity.INFORMATION

    def test_equal_to_threshold_not_escalated(self, recording_logger, clock):
        op = make_operation(recording_logger, warning_threshold=timedelta(milliseconds=100))
        clock.advance(ms=100)
        op.complete()
        assert recording_logger.records[0].severity is Severity.INFORMATION

    def test_higher_level_not_lowered(self, recording_logger, clock):
        op = make_operation(recording_logger, warning_threshold=timedelta(milliseconds=1))
        clock.advance(ms=10)
        op.complete(Severity.ERROR)
        assert recording_logger.records[0].severity is Severity.ERROR

    def test_escalates_trace_abandonment(self, recording_logger, clock):
        op = make_operation(
            recording_logger,
            abandonment=Severity.TRACE,
            warning_threshold=timedelta(milliseconds=1),
        )
        clock.advance(ms=2)
        op.dispose()
        assert recording_logger.records[0].severity is Severity.WARNING

    def test_no_threshold_keeps_configured_level(self, recording_logger, clock):
        op = make_operation(recording_logger, completion=Severity.DEBUG)
        clock.advance(ms=60_000)
        op.complete()
        assert recording_logger.records[0].severity is Severity.DEBUG

    def test_escalation_enables_otherwise_disabled_record(self, clock):
        logger = RecordingLogger(minimum=Severity.WARNING)
        op = make_operation(logger, completion=Severity.DEBUG, warning_threshold=timedelta(milliseconds=1))
        clock.advance(ms=5)
        op.complete()
        assert [r.severity for r in logger.records] == [Severity.WARNING]


# ── Reentrancy ───────────────────────────────────────────────


class TestReentrancy:
    def test_silent_before_emit(self, clock):
        class ReentrantLogger(RecordingLogger):
            op = None

            def log(self, severity, template, args=(), exception=None):
                super().log(severity, template, args, exception)
                self.op.complete()
                self.op.abandon()

        logger = ReentrantLogger()
        op = make_operation(logger)
        logger.op = op
        op.complete()
        assert len(logger.records) == 1

    def test_scopes_released_when_log_raises(self, clock):
        class FailingLogger(RecordingLogger):
            def log(self, severity, template, args=(), exception=None):
                raise OSError("sink unavailable")

        logger = FailingLogger()
        op = make_operation(logger)
        with pytest.raises(OSError):
            op.complete()
        assert logger.open_scopes == []
