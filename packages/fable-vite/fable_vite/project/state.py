"""
Project state: the current Project snapshot plus the artifact cache.

All mutation happens on the event loop from the change batcher's single
dispatch; readers (resolver, loader, hot-update) never mutate.
"""

import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from fable_vite.daemon.protocol import Diagnostic
from fable_vite.infra.exceptions import CompilationError, TransportError
from fable_vite.infra.observability import get_logger, log_performance
from fable_vite.paths import normalize_path
from fable_vite.project.cache import ArtifactCache
from fable_vite.project.models import CompiledArtifact, Project

if TYPE_CHECKING:
    from fable_vite.context import BuildContext

logger = get_logger(__name__)


class ProjectState:
    """
    Owner of the Project snapshot and the ArtifactCache.

    Failed compiles never overwrite cache entries: the last good artifact keeps
    being served and the failed paths are remembered as stale.
    """

    def __init__(self, context: "BuildContext"):
        self.context = context
        self.cache = ArtifactCache()
        self._project: Project | None = None
        self._stale: set[str] = set()

    @property
    def project(self) -> Project | None:
        return self._project

    @property
    def source_files(self) -> tuple[str, ...]:
        return self._project.source_files if self._project else ()

    @property
    def dependent_files(self) -> frozenset[str]:
        return self._project.dependent_files if self._project else frozenset()

    def is_source_file(self, path: str) -> bool:
        return self._project is not None and self._project.is_source_file(normalize_path(path))

    def is_dependent_file(self, path: str) -> bool:
        path = normalize_path(path)
        if path == self.context.project_file:
            return True
        return self._project is not None and self._project.is_dependent_file(path)

    def is_stale(self, path: str) -> bool:
        return normalize_path(path) in self._stale

    def artifact(self, path: str) -> CompiledArtifact | None:
        return self.cache.get(path)

    # ========================================================================
    # Recompilation
    # ========================================================================

    async def full_recompile(self) -> list[Diagnostic]:
        """
        Reload the project and compile everything.

        Returns the diagnostics reported by the daemon, or an empty list when
        the recompile failed (previous project and cache are kept).
        """
        ctx = self.context
        client = ctx.client

        logger.info("full_recompile_started", project=ctx.project_file, configuration=ctx.configuration.value)

        start = time.time()
        try:
            project_data = await client.init_project(
                ctx.configuration.value,
                ctx.project_file,
                ctx.fable_library,
                ctx.options.exclude_paths,
                ctx.options.no_reflection,
            )
            ctx.reporter.report(project_data.diagnostics)
            compiled = await client.compile_all()
        except (TransportError, CompilationError) as e:
            ctx.reporter.report_failure("full_recompile_failed", e, project=ctx.project_file)
            return []
        log_performance(logger, "full_recompile", (time.time() - start) * 1000, project=ctx.project_file)

        source_files = tuple(normalize_path(p) for p in project_data.source_files)
        compiled = {normalize_path(p): code for p, code in compiled.items()}

        missing = [p for p in source_files if p not in compiled]
        if missing:
            logger.warning("compiled_files_missing", count=len(missing), files=missing[:10])

        project = Project(
            root_file=ctx.project_file,
            configuration=ctx.configuration,
            source_files=source_files,
            dependent_files=frozenset(normalize_path(p) for p in project_data.dependent_files),
        )

        # Build first, then swap: no await between these lines
        self.cache.replace({**compiled, **{p: compiled.get(p, "") for p in source_files}})
        self._project = project
        self._stale.clear()

        logger.info(
            "full_recompile_completed",
            source_files=len(project.source_files),
            dependent_files=len(project.dependent_files),
        )
        return list(project_data.diagnostics)

    async def recompile_files(self, paths: Iterable[str]) -> list[Diagnostic]:
        """
        Recompile changed files and merge the result into the cache.

        On failure the cache is left untouched and the requested paths are
        marked stale.
        """
        requested = {normalize_path(p) for p in paths}
        if not requested:
            return []

        logger.info("recompile_files_started", files=sorted(requested))

        start = time.time()
        try:
            output = await self.context.client.compile_files(requested)
        except (TransportError, CompilationError) as e:
            self._stale.update(requested)
            self.context.reporter.report_failure("recompile_files_failed", e, files=sorted(requested))
            return []
        log_performance(logger, "recompile_files", (time.time() - start) * 1000, files=len(requested))

        compiled = {normalize_path(p): code for p, code in output.compiled.items()}
        self.cache.update(compiled)
        self._stale.difference_update(compiled)

        self.context.reporter.report(output.diagnostics)
        logger.info("recompile_files_completed", compiled=len(compiled))
        return list(output.diagnostics)

    # ========================================================================
    # Invalidation
    # ========================================================================

    def invalidation_set(self, path: str) -> tuple[str, ...]:
        """
        Source files whose compiled output may change when ``path`` changes.

        F# compiles in file order, so a file can only depend on files listed
        before it: everything from the changed file's index onwards. A project
        or dependent file invalidates the whole project.
        """
        if self._project is None:
            return ()

        path = normalize_path(path)
        index = self._project.index_of(path)
        if index >= 0:
            return self._project.source_files[index:]
        if self.is_dependent_file(path):
            return self._project.source_files
        return ()
