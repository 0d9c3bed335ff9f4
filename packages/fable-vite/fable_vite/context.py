"""
Build context.

Everything that used to be process-wide state (daemon connection, options,
resolved project file) lives on one object created at build start and torn
down at build end. Components receive it in their constructor.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from fable_vite.daemon.client import DaemonClient
from fable_vite.host import HostConfig
from fable_vite.infra.config import Settings
from fable_vite.infra.exceptions import ConfigurationError
from fable_vite.options import PluginOptions
from fable_vite.paths import normalize_path
from fable_vite.project.diagnostics import DiagnosticReporter
from fable_vite.project.models import Configuration


@dataclass
class BuildContext:
    settings: Settings
    options: PluginOptions
    host: HostConfig
    project_file: str
    configuration: Configuration
    fable_library: str
    client: DaemonClient
    reporter: DiagnosticReporter = field(default_factory=DiagnosticReporter)

    @classmethod
    def create(
        cls,
        settings: Settings,
        options: PluginOptions,
        host: HostConfig,
        client: DaemonClient | None = None,
    ) -> "BuildContext":
        """
        Resolve the project file and wire a daemon client.

        Raises:
            ConfigurationError: no project file can be found
        """
        project_file = find_project_file(host.root, options.project_file)
        return cls(
            settings=settings,
            options=options,
            host=host,
            project_file=project_file,
            configuration=Configuration.for_command(host.command),
            fable_library=normalize_path(os.path.join(host.root, settings.daemon.fable_library_dir)),
            client=client or DaemonClient(settings.daemon, cwd=host.root),
            reporter=DiagnosticReporter(host.logger),
        )


def find_project_file(root: str, configured: str | None = None) -> str:
    """
    Explicit project file (relative to ``root``) or the first ``*.fsproj`` in ``root``.

    Raises:
        ConfigurationError: configured file missing, or nothing to discover
    """
    root_path = Path(root)

    if configured:
        candidate = Path(configured)
        if not candidate.is_absolute():
            candidate = root_path / candidate
        if not candidate.is_file():
            raise ConfigurationError(f"Project file does not exist: {candidate}", root=root)
        return normalize_path(str(candidate.resolve()))

    if not root_path.is_dir():
        raise ConfigurationError(f"Project root is not a directory: {root}", root=root)

    candidates = sorted(p for p in root_path.glob("*.fsproj") if p.is_file())
    if not candidates:
        raise ConfigurationError(f"No .fsproj file found in {root}", root=root)
    return normalize_path(str(candidates[0].resolve()))
