"""
Orchestrator Exceptions

Exception hierarchy for the daemon bridge, project state and plugin lifecycle.

Only ConfigurationError is allowed to cross the plugin/host boundary; every
other error is logged and degrades to serving the last good artifact.
"""

from typing import Any

# ============================================================================
# Base Exception
# ============================================================================


class FableViteError(Exception):
    """
    Base exception for all orchestrator errors.

    Attributes:
        message: Human-readable error message
        details: Additional context (dict)
        retryable: Whether the operation can be retried
        component: Which component failed
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        component: str = "unknown",
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        self.component = component

    def __str__(self) -> str:
        base = f"[{self.component}] {self.message}"
        if self.details:
            base += f" | details={self.details}"
        return base


# ============================================================================
# Daemon Exceptions
# ============================================================================


class TransportError(FableViteError):
    """Daemon unreachable, crashed, or answered with a malformed message."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, retryable=False, component="daemon")


class CompilationError(FableViteError):
    """The daemon answered with a Failure result."""

    def __init__(self, message: str, method: str | None = None):
        super().__init__(
            message,
            details={"method": method} if method else None,
            retryable=False,
            component="compiler",
        )


# ============================================================================
# Plugin Exceptions
# ============================================================================


class ResolutionError(FableViteError):
    """Requested module is not part of the current project."""

    def __init__(self, specifier: str, importer: str | None = None):
        super().__init__(
            f"Module is not part of the project: {specifier}",
            details={"specifier": specifier, "importer": importer},
            component="resolver",
        )
        self.specifier = specifier
        self.importer = importer


class ConfigurationError(FableViteError):
    """No project file could be discovered or the plugin options are invalid."""

    def __init__(self, message: str, root: str | None = None):
        super().__init__(
            message,
            details={
                "root": root,
                "suggestion": (
                    "Pass an explicit project file:\n"
                    "  1. fable({'projectFile': 'src/App.fsproj'})\n"
                    "  2. or place a single *.fsproj in the project root"
                ),
            }
            if root
            else None,
            component="config",
        )
