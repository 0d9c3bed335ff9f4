"""Project snapshot, artifact cache and recompilation."""

from fable_vite.project.cache import ArtifactCache
from fable_vite.project.diagnostics import DiagnosticReporter
from fable_vite.project.models import CompiledArtifact, Configuration, Project
from fable_vite.project.state import ProjectState

__all__ = [
    "ArtifactCache",
    "CompiledArtifact",
    "Configuration",
    "DiagnosticReporter",
    "Project",
    "ProjectState",
]
