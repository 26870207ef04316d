"""
logtimings logging layer - scoped loggers, context scopes and configuration.

This package provides:
- The ``ScopedLogger`` contract operations log through
- Context scopes propagated via contextvars
- Named-hole message templates
- structlog-based rendering configured from the environment

Usage:
    from logtimings.logging import begin_scope, configure_logging, get_logger

    # Configure once at startup
    configure_logging()

    # Get a scoped logger
    log = get_logger(__name__)

    # Open a scope (automatically attached to all records while open)
    with begin_scope(tenant="acme"):
        log.log(Severity.INFORMATION, "Imported {Count} rows", (42,))
"""

from logtimings.logging.config import configure_logging, is_configured, is_debug_enabled
from logtimings.logging.context import (
    NULL_SCOPE,
    NullScope,
    Releasable,
    ScopeHandle,
    add_scope_processor,
    begin_scope,
    clear_scopes,
    get_scope_context,
)
from logtimings.logging.logger import (
    NULL_LOGGER,
    NullScopedLogger,
    ScopedLogger,
    StdlibScopedLogger,
    get_logger,
)
from logtimings.logging.templates import RenderedMessage, render

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    "is_debug_enabled",
    # Context
    "begin_scope",
    "clear_scopes",
    "get_scope_context",
    "add_scope_processor",
    "ScopeHandle",
    "NullScope",
    "NULL_SCOPE",
    "Releasable",
    # Loggers
    "get_logger",
    "ScopedLogger",
    "StdlibScopedLogger",
    "NullScopedLogger",
    "NULL_LOGGER",
    # Templates
    "render",
    "RenderedMessage",
]
