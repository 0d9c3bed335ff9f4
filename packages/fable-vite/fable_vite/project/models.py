"""Project model."""

from dataclasses import dataclass, field
from enum import Enum


class Configuration(str, Enum):
    DEBUG = "Debug"
    RELEASE = "Release"

    @classmethod
    def for_command(cls, command: str) -> "Configuration":
        """``vite build`` compiles in Release, everything else in Debug."""
        return cls.RELEASE if command == "build" else cls.DEBUG


@dataclass(frozen=True)
class Project:
    """
    Snapshot of the loaded project.

    Replaced wholesale on every full recompile, never mutated, so readers never
    observe a half-updated project.
    """

    root_file: str
    configuration: Configuration
    source_files: tuple[str, ...] = ()  # compile order reported by the daemon
    dependent_files: frozenset[str] = field(default_factory=frozenset)

    def index_of(self, path: str) -> int:
        try:
            return self.source_files.index(path)
        except ValueError:
            return -1

    def is_source_file(self, path: str) -> bool:
        return path in self.source_files

    def is_dependent_file(self, path: str) -> bool:
        return path == self.root_file or path in self.dependent_files


@dataclass(frozen=True)
class CompiledArtifact:
    path: str
    code: str
