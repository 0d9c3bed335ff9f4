"""
fable-vite

Incremental F# (Fable) compilation inside a Vite-style bundler: the plugin
keeps one Fable daemon alive, serves its output as virtual modules and keeps
hot module replacement in step with recompiles.
"""

from fable_vite.host import HostConfig
from fable_vite.infra.exceptions import (
    CompilationError,
    ConfigurationError,
    FableViteError,
    ResolutionError,
    TransportError,
)
from fable_vite.options import PluginOptions
from fable_vite.plugin import FablePlugin

__version__ = "0.1.0"

__all__ = [
    "CompilationError",
    "ConfigurationError",
    "FablePlugin",
    "FableViteError",
    "HostConfig",
    "PluginOptions",
    "ResolutionError",
    "TransportError",
]
