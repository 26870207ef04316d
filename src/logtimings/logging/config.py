"""
Logging configuration.

Provides a single entry point for configuring structured logging.
Operation records are emitted through stdlib ``logging``; structlog's
``ProcessorFormatter`` renders them, and any structlog-native loggers, with
one shared processor chain so both look the same.

Configuration is read from ``TimingsSettings`` (environment variables):
- LOGTIMINGS_LOG_LEVEL: TRACE | DEBUG | INFO | WARNING | ERROR (default: INFO)
- LOGTIMINGS_LOG_FORMAT: json | console (default: console)

Usage:
    # Configure at application startup
    from logtimings.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

from logtimings.logging.context import add_scope_processor
from logtimings.settings import get_settings
from logtimings.severity import Severity

# Track if logging has been configured
_configured = False


def add_record_properties(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that lifts template properties and captured scopes
    off a stdlib ``LogRecord`` into the event.

    Template properties take precedence over scope values; neither overrides
    keys already on the event.
    """
    record = event_dict.get("_record")
    if record is None:
        return event_dict

    for source in (getattr(record, "properties", None), getattr(record, "scopes", None)):
        if not source:
            continue
        for key, value in source.items():
            event_dict.setdefault(key, value)

    return event_dict


def configure_logging(
    level: str | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at application startup.
    Subsequent calls are no-ops unless force=True.

    Args:
        level: Log level (overrides LOGTIMINGS_LOG_LEVEL)
        format: Output format (overrides LOGTIMINGS_LOG_FORMAT)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    settings = get_settings()
    log_level = Severity.parse(level or settings.log_level)
    log_format = (format or settings.log_format).lower()

    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_scope_processor,
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Processor
    final_processors: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if log_format == "json":
        final_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    final_processors.append(renderer)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[add_record_properties, *shared_processors],
            processors=final_processors,
        )
    )

    logging.basicConfig(
        handlers=[handler],
        level=int(log_level),
        force=True,  # Override any existing config
    )
    logging.getLogger("logtimings").setLevel(int(log_level))

    _configured = True


def is_debug_enabled() -> bool:
    """Check if DEBUG level logging is enabled."""
    return logging.getLogger().isEnabledFor(logging.DEBUG)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
