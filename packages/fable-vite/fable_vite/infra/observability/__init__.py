"""
Observability Infrastructure

Structured logging for the orchestrator.
"""

from .logging import (
    LogPerformance,
    add_context,
    clear_context,
    get_logger,
    log_error,
    log_performance,
    setup_logging,
)

__all__ = [
    "LogPerformance",
    "add_context",
    "clear_context",
    "get_logger",
    "log_error",
    "log_performance",
    "setup_logging",
]
