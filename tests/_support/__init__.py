"""
Test support utilities for logtimings tests.

Test doubles that are imported directly by test modules rather than injected
as fixtures.
"""

from tests._support.recording import FakeClock, LoggedRecord, RecordingLogger, RecordingScope

__all__ = ["FakeClock", "LoggedRecord", "RecordingLogger", "RecordingScope"]
