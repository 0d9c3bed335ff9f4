"""
Hot-update propagation.

Turns host notifications into change events, holds the host's hot-update hook
until the batch holding the change has been recompiled, and tells the client
which modules to reload.
"""

from collections.abc import Sequence

from fable_vite.daemon.protocol import Diagnostic
from fable_vite.hmr.batcher import ChangeBatcher
from fable_vite.hmr.events import ChangeEvent, ProjectFileChanged, SourceFileChanged
from fable_vite.hmr.signal import CompletionSignal
from fable_vite.host import DevServer, ModuleNode
from fable_vite.infra.observability import get_logger, log_error
from fable_vite.paths import normalize_path, to_module_id
from fable_vite.project.state import ProjectState

logger = get_logger(__name__)

HOT_UPDATE_DEPENDENTS = "hot-update-dependents"


class HotUpdatePropagator:
    def __init__(self, state: ProjectState, batcher: ChangeBatcher):
        self.state = state
        self.batcher = batcher

    def classify(self, path: str) -> ChangeEvent | None:
        """Source file, project/dependent file, or not ours (None)."""
        path = normalize_path(path)
        if path in self.state.cache or self.state.is_source_file(path):
            return SourceFileChanged(path)
        if self.state.is_dependent_file(path):
            return ProjectFileChanged(path)
        return None

    def on_source_changed(self, path: str) -> CompletionSignal[list[Diagnostic]]:
        return self.batcher.push_event(SourceFileChanged(path))

    def on_project_dependent_changed(self, path: str) -> CompletionSignal[list[Diagnostic]]:
        return self.batcher.push_event(ProjectFileChanged(path))

    async def on_hot_update(
        self,
        path: str,
        server: DevServer,
        modules: Sequence[ModuleNode],
    ) -> list[ModuleNode] | None:
        """
        Recompile ``path`` and return the modules the host should reload.

        Returns None for files that are not ours (static assets, other
        plugins' files) so the host handles them as usual.
        """
        event = self.classify(path)
        if event is None:
            return None

        # The host must not reload before the new artifact is in the cache
        await self.batcher.push_event(event).wait()

        self.notify_dependents(event.path, server)

        # A changed module nobody imports has nothing to reload
        affected = [module for module in modules if module.importers]
        logger.debug("hot_update_propagated", path=event.path, modules=len(affected))
        return affected

    def notify_dependents(self, path: str, server: DevServer) -> list[str]:
        """
        Send ``hot-update-dependents`` with the URLs of every loaded module
        from ``path`` onwards in compile order.

        The host's import graph does not know that a later F# file can depend
        on an earlier one without a matching JavaScript import.
        """
        urls: list[str] = []
        for source_file in self.state.invalidation_set(path):
            module = server.module_graph.get_module_by_id(to_module_id(source_file))
            if module is not None:
                urls.append(module.url)

        if not urls:
            return urls

        try:
            server.ws.send({"type": "custom", "event": HOT_UPDATE_DEPENDENTS, "data": urls})
        except Exception as e:
            log_error(logger, "hot_update_notify_failed", error=e, path=path)
        return urls
