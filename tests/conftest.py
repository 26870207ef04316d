"""
Shared pytest fixtures for logtimings tests.

This module provides:
- ``recording_logger``: an in-memory ``ScopedLogger``
- ``clock``: a controllable replacement for the operation timestamp source
- Isolation of settings, environment and context scopes between tests
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure logtimings package and the tests._support helpers are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

import logtimings.operation as operation_module
from logtimings.logging.context import clear_scopes
from logtimings.settings import clear_settings_cache
from tests._support import FakeClock, RecordingLogger


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(operation_module, "_timestamp", fake)
    return fake


@pytest.fixture(autouse=True)
def _isolate(monkeypatch, tmp_path):
    """Reset scopes, settings and LOGTIMINGS_* environment around each test."""
    for key in list(os.environ):
        if key.startswith("LOGTIMINGS_"):
            monkeypatch.delenv(key)
    # No stray .env file gets picked up by TimingsSettings
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    clear_scopes()
    yield
    clear_settings_cache()
    clear_scopes()
