"""Utility functions and helpers.

This module provides various utilities for stack-focus:
- errors: Exception hierarchy
- logging: Structured logging configuration
- metrics: In-process run metrics
"""

from stack_focus.utils.errors import (
    ConfigError,
    InternalInvariantViolation,
    PatternParseError,
    StackFocusError,
)
from stack_focus.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
)
from stack_focus.utils.metrics import (
    Counter,
    Histogram,
    MetricsRegistry,
    Timer,
    get_metrics,
)

__all__ = [
    # Errors
    "ConfigError",
    # Metrics
    "Counter",
    "Histogram",
    "InternalInvariantViolation",
    # Logging
    "LogFormat",
    "LogLevel",
    "MetricsRegistry",
    "PatternParseError",
    "StackFocusError",
    "Timer",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_metrics",
]
