"""
Integration Tests: FablePlugin lifecycle

Drives the plugin through the host hooks the way a dev-server would, with a
fake daemon client behind it.

Scenarios:
1. config -> build start -> resolve/load -> build end
2. watcher and hot-update notifications for one edit cost one recompile
3. daemon failures degrade to serving the last good artifact
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from fable_vite import ConfigurationError, FablePlugin, HostConfig, TransportError
from fable_vite.hmr.propagator import HOT_UPDATE_DEPENDENTS
from fable_vite.infra.config import Settings
from fable_vite.infra.exceptions import CompilationError
from fable_vite.paths import normalize_path
from tests.fakes import FakeDaemonClient, FakeDevServer, FakeHostLogger, FakeModule


class SampleProject:
    """On-disk project root with a fake daemon that knows its files."""

    def __init__(self, root: Path):
        self.root = normalize_path(str(root.resolve()))
        self.project_file = f"{self.root}/App.fsproj"
        self.library = f"{self.root}/Library.fs"
        self.app = f"{self.root}/App.fs"
        self.props = f"{self.root}/Directory.Build.props"

        Path(self.project_file).write_text("<Project />")
        Path(self.library).write_text("module Library")
        Path(self.app).write_text("module App")

        self.client = FakeDaemonClient(
            source_files=[self.library, self.app],
            compiled={
                self.library: "export const greet = (name) => `Hello ${name}`;",
                self.app: "import { greet } from './Library.js'; greet('F#');",
            },
            dependent_files=[self.props],
        )
        self.host_logger = FakeHostLogger()
        self.watched: list[str] = []

    def host(self, command: str = "serve") -> HostConfig:
        return HostConfig(root=self.root, command=command, logger=self.host_logger)

    def plugin(self, options=None) -> FablePlugin:
        return FablePlugin(
            options,
            settings=Settings(batch_window_ms=10),
            client_factory=lambda settings, host: self.client,
            configure_logging=False,
        )


@pytest.fixture
def sample(tmp_path) -> SampleProject:
    return SampleProject(tmp_path)


@pytest_asyncio.fixture
async def started(sample):
    plugin = sample.plugin()
    plugin.on_config_resolved(sample.host())
    await plugin.on_build_start(sample.watched.append)
    yield plugin
    await plugin.on_build_end()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_build_start_compiles_everything(self, started, sample):
        assert sample.client.start_count == 1
        assert len(sample.client.calls_of("init_project")) == 1
        assert len(sample.client.calls_of("compile_all")) == 1
        assert started.state.source_files == (sample.library, sample.app)

    @pytest.mark.asyncio
    async def test_registers_watch_files(self, started, sample):
        assert sample.watched == sorted([sample.project_file, sample.props])

    @pytest.mark.asyncio
    async def test_resolve_and_load(self, started, sample):
        module_id = started.resolve_id("./Library.js", sample.app)

        assert module_id == f"{sample.root}/Library.js"
        assert started.load(module_id) == sample.client.compiled[sample.library]
        assert started.on_transform("code", module_id) == "code"
        assert started.resolve_id("./styles.css", sample.app) is None

    @pytest.mark.asyncio
    async def test_build_end_is_idempotent(self, sample):
        plugin = sample.plugin()
        plugin.on_config_resolved(sample.host())
        await plugin.on_build_start()

        await plugin.on_build_end()
        await plugin.on_build_end()

        assert sample.client.close_count == 1

    @pytest.mark.asyncio
    async def test_build_start_twice(self, started, sample):
        await started.on_build_start()

        assert sample.client.start_count == 1

    @pytest.mark.asyncio
    async def test_build_command_compiles_release(self, sample):
        plugin = sample.plugin()
        plugin.on_config_resolved(sample.host("build"))
        await plugin.on_build_start()

        ((configuration, *_),) = sample.client.calls_of("init_project")
        assert configuration == "Release"
        await plugin.on_build_end()

    @pytest.mark.asyncio
    async def test_options_reach_the_daemon(self, sample):
        plugin = sample.plugin({"fsproj": "App.fsproj", "noReflection": True, "exclude": ["Fable.Core"]})
        plugin.on_config_resolved(sample.host())
        await plugin.on_build_start()

        ((_, project, library, excludes, no_reflection),) = sample.client.calls_of("init_project")
        assert project == sample.project_file
        assert library == f"{sample.root}/node_modules/@fable-org/fable-library-js"
        assert excludes == ("Fable.Core",)
        assert no_reflection is True
        await plugin.on_build_end()

    @pytest.mark.asyncio
    async def test_hooks_before_build_start(self, sample):
        plugin = sample.plugin()

        assert plugin.resolve_id("./Library.js", sample.app) is None
        assert plugin.load(f"{sample.root}/Library.js") is None
        assert await plugin.on_hot_update(sample.library, FakeDevServer(), []) is None
        await plugin.on_watch_change(sample.library)


class TestConfigurationErrors:
    @pytest.mark.asyncio
    async def test_build_start_before_config(self, sample):
        with pytest.raises(ConfigurationError):
            await sample.plugin().on_build_start()

    def test_no_project_file(self, tmp_path):
        plugin = FablePlugin(configure_logging=False)

        with pytest.raises(ConfigurationError, match="No .fsproj"):
            plugin.on_config_resolved(HostConfig(root=str(tmp_path)))

    def test_invalid_options(self):
        with pytest.raises(ValueError):
            FablePlugin({"jsx": "classic"}, configure_logging=False)


class TestChanges:
    @pytest.mark.asyncio
    async def test_watch_change_recompiles_file(self, started, sample):
        sample.client.compiled[sample.library] = "export const greet = (name) => `Hi ${name}`;"

        await started.on_watch_change(sample.library)

        assert sample.client.calls_of("compile_files") == [(sample.library,)]
        assert started.load(f"{sample.root}/Library.js").endswith("`Hi ${name}`;")

    @pytest.mark.asyncio
    async def test_project_change_reloads_and_watches_new_files(self, started, sample):
        extra = f"{sample.root}/Extra.props"
        sample.client.dependent_files.append(extra)

        await started.on_watch_change(sample.project_file)

        assert len(sample.client.calls_of("init_project")) == 2
        assert extra in sample.watched
        assert sample.watched.count(sample.project_file) == 1

    @pytest.mark.asyncio
    async def test_unrelated_watch_change(self, started, sample):
        await started.on_watch_change(f"{sample.root}/index.html")

        assert sample.client.calls_of("compile_files") == []

    @pytest.mark.asyncio
    async def test_watcher_and_hot_update_share_one_recompile(self, started, sample):
        main = FakeModule("/main.js")
        library = FakeModule(f"{sample.root}/Library.js", url="/Library.js", importers=[main])
        app = FakeModule(f"{sample.root}/App.js", url="/App.js", importers=[main])
        server = FakeDevServer([main, library, app])

        _, modules = await asyncio.gather(
            started.on_watch_change(sample.library),
            started.on_hot_update(sample.library, server, [library]),
        )

        assert modules == [library]
        assert sample.client.calls_of("compile_files") == [(sample.library,)]
        assert server.ws.sent == [{"type": "custom", "event": HOT_UPDATE_DEPENDENTS, "data": ["/Library.js", "/App.js"]}]


class TestDegradation:
    @pytest.mark.asyncio
    async def test_daemon_start_failure_is_reported(self, sample):
        sample.client.fail_start(TransportError("Could not start the Fable daemon"))
        plugin = sample.plugin()
        plugin.on_config_resolved(sample.host())

        await plugin.on_build_start()

        assert any("daemon_start_failed" in e for e in sample.host_logger.errors)
        assert plugin.load(f"{sample.root}/Library.js") is None
        await plugin.on_build_end()

    @pytest.mark.asyncio
    async def test_compile_error_keeps_last_good_artifact(self, started, sample):
        before = started.load(f"{sample.root}/App.js")
        sample.client.fail_next("compile_files", CompilationError("The value or constructor 'x' is not defined."))

        await started.on_watch_change(sample.app)

        assert started.load(f"{sample.root}/App.js") == before
        assert any("not defined" in e for e in sample.host_logger.errors)

    @pytest.mark.asyncio
    async def test_build_end_releases_pending_hot_update(self, sample):
        plugin = FablePlugin(
            settings=Settings(batch_window_ms=5000),
            client_factory=lambda settings, host: sample.client,
            configure_logging=False,
        )
        plugin.on_config_resolved(sample.host())
        await plugin.on_build_start()

        pending = asyncio.create_task(plugin.on_hot_update(sample.library, FakeDevServer(), []))
        await asyncio.sleep(0.01)
        await plugin.on_build_end()

        assert await asyncio.wait_for(pending, timeout=1) == []
        assert sample.client.calls_of("compile_files") == []
