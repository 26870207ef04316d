"""
Log severities for timed operations.

Values line up with stdlib ``logging`` level numbers, so a ``Severity`` can be
handed straight to ``Logger.isEnabledFor`` / ``Logger.log`` and compared with
plain integer ordering (TRACE < DEBUG < ... < CRITICAL < NONE).

``TRACE`` is not a stdlib level; importing this module registers the name so
that formatters render it as ``TRACE`` rather than ``Level 5``.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any

from logtimings.errors import InvalidArgumentError


class Severity(IntEnum):
    """Ordered log severity."""

    TRACE = 5
    DEBUG = logging.DEBUG
    INFORMATION = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL
    # Never enabled on any logger
    NONE = 100

    @classmethod
    def parse(cls, value: Any) -> Severity:
        """
        Coerce a severity, a level number, or a level name into a ``Severity``.

        Names are case-insensitive and accept the stdlib spellings
        (``info``, ``warn``, ``fatal``) alongside the canonical ones.

        Raises:
            InvalidArgumentError: If the value does not name a severity.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise InvalidArgumentError(
                    "severity", f"Unknown severity level: {value!r}"
                ) from None
        if isinstance(value, str):
            key = value.strip().upper()
            if key in _ALIASES:
                return _ALIASES[key]
        raise InvalidArgumentError("severity", f"Unknown severity: {value!r}")


_ALIASES: dict[str, Severity] = {
    **{member.name: member for member in Severity},
    "INFO": Severity.INFORMATION,
    "WARN": Severity.WARNING,
    "FATAL": Severity.CRITICAL,
    "OFF": Severity.NONE,
}

logging.addLevelName(int(Severity.TRACE), "TRACE")
