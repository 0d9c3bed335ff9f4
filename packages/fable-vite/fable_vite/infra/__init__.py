"""Infrastructure: configuration, logging and the exception hierarchy."""

from fable_vite.infra.exceptions import (
    CompilationError,
    ConfigurationError,
    FableViteError,
    ResolutionError,
    TransportError,
)

__all__ = [
    "CompilationError",
    "ConfigurationError",
    "FableViteError",
    "ResolutionError",
    "TransportError",
]
