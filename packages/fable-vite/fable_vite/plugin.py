"""
Plugin lifecycle.

The bundler drives the orchestrator only through these hooks:

    on_config_resolved -> on_build_start -> (resolve_id / load / on_transform,
    on_watch_change / on_hot_update)* -> on_build_end

Errors never escape the hooks except ConfigurationError; everything else is
logged and the last good artifacts keep being served.

Liveness: a daemon that stops answering stalls every later dispatch (and the
hot-update hooks waiting on them) unless ``request_timeout_s`` is configured.
"""

from collections.abc import Callable, Sequence
from typing import Any

from fable_vite.context import BuildContext, find_project_file
from fable_vite.daemon.client import DaemonClient
from fable_vite.hmr.batcher import ChangeBatcher
from fable_vite.hmr.events import SourceFileChanged
from fable_vite.hmr.propagator import HotUpdatePropagator
from fable_vite.host import DevServer, HostConfig, ModuleNode
from fable_vite.infra.config import Settings, settings as default_settings
from fable_vite.infra.exceptions import ConfigurationError, TransportError
from fable_vite.infra.observability import LogPerformance, add_context, clear_context, get_logger, setup_logging
from fable_vite.options import PluginOptions
from fable_vite.project.state import ProjectState
from fable_vite.resolver import VirtualModuleResolver

logger = get_logger(__name__)

ClientFactory = Callable[[Settings, HostConfig], DaemonClient]


class FablePlugin:
    """
    F# (Fable) support for a Vite-style bundler.

    Usage:
        plugin = FablePlugin({"projectFile": "App.fsproj", "jsx": "automatic"})
        plugin.on_config_resolved(HostConfig(root="/app", command="serve"))
        await plugin.on_build_start()
        module_id = plugin.resolve_id("./Library.js", "/app/App.fs")
        code = plugin.load(module_id)
        await plugin.on_build_end()
    """

    name = "vite-plugin-fable"

    def __init__(
        self,
        options: PluginOptions | dict[str, Any] | None = None,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
        configure_logging: bool = True,
    ):
        """
        Args:
            options: Plugin options (JavaScript-style keys accepted)
            settings: Environment settings (defaults to the process settings)
            client_factory: Builds the daemon client (defaults to spawning the daemon)
            configure_logging: Apply the structlog setup from settings
        """
        if isinstance(options, PluginOptions):
            self.options = options
        else:
            self.options = PluginOptions.model_validate(options or {})
        self.settings = settings or default_settings
        self.client_factory = client_factory
        self.configure_logging = configure_logging

        self.host: HostConfig | None = None
        self.context: BuildContext | None = None
        self.state: ProjectState | None = None
        self.batcher: ChangeBatcher | None = None
        self.resolver: VirtualModuleResolver | None = None
        self.propagator: HotUpdatePropagator | None = None

        self._add_watch_file: Callable[[str], None] | None = None
        self._watched: set[str] = set()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def on_config_resolved(self, config: HostConfig) -> None:
        """
        Remember the host config and check that a project file exists.

        Raises:
            ConfigurationError: no project file can be found
        """
        if self.configure_logging:
            observability = self.settings.observability
            setup_logging(level=observability.log_level, format=observability.log_format)

        self.host = config
        project_file = find_project_file(config.root, self.options.project_file)
        add_context(plugin=self.name, project=project_file)
        logger.info("config_resolved", root=config.root, command=config.command, project=project_file)

    async def on_build_start(self, add_watch_file: Callable[[str], None] | None = None) -> None:
        """
        Spawn the daemon and run the initial full compile.

        Raises:
            ConfigurationError: called before on_config_resolved, or no project file
        """
        if self.host is None:
            raise ConfigurationError("on_config_resolved must run before on_build_start")
        if self.context is not None:
            logger.debug("build_already_started")
            return

        client = self.client_factory(self.settings, self.host) if self.client_factory else None
        context = BuildContext.create(self.settings, self.options, self.host, client=client)

        self.context = context
        self.state = ProjectState(context)
        self.batcher = ChangeBatcher(self.state, window_ms=self.settings.batching.window_ms)
        self.resolver = VirtualModuleResolver(self.state)
        self.propagator = HotUpdatePropagator(self.state, self.batcher)
        self._add_watch_file = add_watch_file

        with LogPerformance(logger, "build_start", configuration=context.configuration.value):
            try:
                await context.client.start()
            except TransportError as e:
                context.reporter.report_failure("daemon_start_failed", e)
                return
            await self.state.full_recompile()

        self._register_watch_files()

    async def on_build_end(self) -> None:
        """Stop batching and terminate the daemon. Safe to call twice."""
        if self.context is None:
            return

        context = self.context
        self.context = None

        if self.batcher is not None:
            await self.batcher.close()
        await context.client.close()

        self._watched.clear()
        clear_context("plugin", "project")
        logger.info("build_ended")

    # ========================================================================
    # Module hooks
    # ========================================================================

    def resolve_id(self, source: str, importer: str | None = None) -> str | None:
        if self.resolver is None:
            return None
        return self.resolver.resolve(source, importer)

    def load(self, module_id: str) -> str | None:
        if self.resolver is None:
            return None
        return self.resolver.load(module_id)

    def on_transform(self, code: str, module_id: str) -> str | None:
        if self.resolver is None:
            return None
        return self.resolver.transform(module_id, code)

    # ========================================================================
    # Change hooks
    # ========================================================================

    async def on_watch_change(self, path: str) -> None:
        """Feed a watcher event into the batcher and wait for its recompile."""
        if self.propagator is None:
            return

        event = self.propagator.classify(path)
        if event is None:
            return

        if isinstance(event, SourceFileChanged):
            self.propagator.on_source_changed(event.path)
        else:
            self.propagator.on_project_dependent_changed(event.path)
            logger.info("project_file_changed", path=event.path)

        await self.propagator.batcher.wait_for_dispatch()
        self._register_watch_files()

    async def on_hot_update(
        self,
        path: str,
        server: DevServer,
        modules: Sequence[ModuleNode],
    ) -> list[ModuleNode] | None:
        if self.propagator is None:
            return None
        return await self.propagator.on_hot_update(path, server, modules)

    # ------------------------------------------------------------------------

    def _register_watch_files(self) -> None:
        if self._add_watch_file is None or self.context is None or self.state is None:
            return
        for path in sorted({self.context.project_file, *self.state.dependent_files} - self._watched):
            self._add_watch_file(path)
            self._watched.add(path)
