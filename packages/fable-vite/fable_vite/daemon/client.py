"""
Fable daemon client.

Owns the external compiler process for the plugin lifetime and exposes the
three daemon operations as typed async calls. No retries: callers decide what
a failed request means.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

from fable_vite.daemon.connection import JsonRpcConnection
from fable_vite.daemon.protocol import (
    COMPILE,
    INITIAL_COMPILE,
    PROJECT_CHANGED,
    Diagnostic,
    expect_success,
    parse_artifacts,
    parse_diagnostics,
    parse_paths,
    parse_result,
)
from fable_vite.infra.config import DaemonConfig
from fable_vite.infra.exceptions import TransportError
from fable_vite.infra.observability import get_logger

logger = get_logger(__name__)

TERMINATE_GRACE_S = 5.0


@dataclass
class ProjectData:
    """Answer to ``fable/project-changed``."""

    source_files: list[str]
    diagnostics: list[Diagnostic] = field(default_factory=list)
    dependent_files: list[str] = field(default_factory=list)


@dataclass
class CompileOutput:
    """Answer to ``fable/compile``."""

    compiled: dict[str, str]
    diagnostics: list[Diagnostic] = field(default_factory=list)


class DaemonClient:
    """
    Client for the Fable daemon (``<daemon> --stdio``).

    Usage:
        client = DaemonClient(settings.daemon, cwd=root)
        await client.start()
        project = await client.init_project("Debug", "/app/App.fsproj", lib, [], False)
        artifacts = await client.compile_all()
        await client.close()
    """

    def __init__(
        self,
        config: DaemonConfig,
        cwd: str | None = None,
        connection: JsonRpcConnection | None = None,
    ):
        """
        Args:
            config: Daemon configuration
            cwd: Working directory of the daemon process
            connection: Pre-built connection (the client then spawns nothing)
        """
        self.config = config
        self.cwd = cwd
        self._connection = connection
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task | None = None
        self._closed = False

    @property
    def is_running(self) -> bool:
        if self._closed or self._connection is None:
            return False
        if self._process is not None and self._process.returncode is not None:
            return False
        return self._connection.is_open

    async def start(self) -> None:
        """Spawn the daemon and open the connection."""
        if self._connection is not None:
            self._connection.start()
            return

        try:
            self._process = await asyncio.create_subprocess_exec(
                self.config.path,
                *self.config.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as e:
            raise TransportError(
                "Could not start the Fable daemon",
                details={"path": self.config.path, "cause": str(e)},
            ) from e

        logger.info("daemon_started", path=self.config.path, pid=self._process.pid)

        self._connection = JsonRpcConnection(
            self._process.stdout,
            self._process.stdin,
            request_timeout=self.config.request_timeout_s,
            debug=self.config.debug,
        )
        self._connection.start()
        self._stderr_task = asyncio.create_task(self._forward_stderr())

    # ========================================================================
    # Daemon operations
    # ========================================================================

    async def init_project(
        self,
        configuration: str,
        root_file: str,
        library_path: str,
        excludes: Iterable[str] = (),
        no_reflection: bool = False,
    ) -> ProjectData:
        """
        Load (or reload) the project and type-check it.

        Raises:
            CompilationError: daemon reported Failure
            TransportError: daemon unreachable or answered garbage
        """
        payload = await self._request(
            PROJECT_CHANGED,
            {
                "configuration": configuration,
                "project": root_file,
                "fableLibrary": library_path,
                "exclude": list(excludes),
                "noReflection": no_reflection,
            },
        )
        source_files, diagnostics, dependent_files = expect_success(parse_result(payload), PROJECT_CHANGED, 3)[:3]
        return ProjectData(
            source_files=parse_paths(source_files),
            diagnostics=parse_diagnostics(diagnostics),
            dependent_files=parse_paths(dependent_files),
        )

    async def compile_all(self) -> dict[str, str]:
        """Compile every source file of the loaded project."""
        payload = await self._request(INITIAL_COMPILE, {})
        (artifacts,) = expect_success(parse_result(payload), INITIAL_COMPILE, 1)[:1]
        return parse_artifacts(artifacts)

    async def compile_files(self, paths: Iterable[str]) -> CompileOutput:
        """Recompile the given files (the daemon adds whatever depends on them)."""
        payload = await self._request(COMPILE, {"fileNames": sorted(paths)})
        artifacts, diagnostics = expect_success(parse_result(payload), COMPILE, 2)[:2]
        return CompileOutput(compiled=parse_artifacts(artifacts), diagnostics=parse_diagnostics(diagnostics))

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def close(self) -> None:
        """Terminate the daemon. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        if self._connection is not None:
            await self._connection.close()

        if self._process is not None and self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass
            else:
                try:
                    await asyncio.wait_for(self._process.wait(), timeout=TERMINATE_GRACE_S)
                except asyncio.TimeoutError:
                    logger.warning("daemon_terminate_timeout", pid=self._process.pid)
                    try:
                        self._process.kill()
                    except ProcessLookupError:
                        pass

        if self._stderr_task is not None and not self._stderr_task.done():
            self._stderr_task.cancel()
            try:
                await self._stderr_task
            except asyncio.CancelledError:
                pass

        logger.info("daemon_stopped")

    async def _request(self, method: str, params: dict) -> object:
        if self._closed or self._connection is None:
            raise TransportError("Daemon is not running", details={"method": method})
        return await self._connection.request(method, params)

    async def _forward_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        async for line in self._process.stderr:
            text = line.decode("utf-8", errors="replace").rstrip()
            if text and self.config.debug:
                logger.debug("daemon_stderr", line=text)
