"""
Unit Tests: DaemonClient

Request shapes and result unwrapping with a mocked connection.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from fable_vite.daemon.client import DaemonClient
from fable_vite.daemon.protocol import COMPILE, INITIAL_COMPILE, PROJECT_CHANGED, DiagnosticSeverity
from fable_vite.infra.config import DaemonConfig
from fable_vite.infra.exceptions import CompilationError, TransportError

WARNING = {
    "severity": "Warning",
    "errorNumberText": "FS0064",
    "message": "This construct causes code to be less generic",
    "fileName": "/proj/A.fs",
    "range": {"startLine": 1, "startColumn": 0, "endLine": 1, "endColumn": 3},
}


def make_client(*results):
    connection = Mock()
    connection.is_open = True
    connection.request = AsyncMock(side_effect=list(results))
    connection.close = AsyncMock()
    return DaemonClient(DaemonConfig(), connection=connection), connection


class TestInitProject:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        client, connection = make_client({"case": "Success", "fields": [["/proj/A.fs"], [], ["/proj/App.fsproj"]]})
        await client.start()

        await client.init_project(
            "Debug", "/proj/App.fsproj", "/proj/node_modules/lib", excludes=["Fable.Core"], no_reflection=True
        )

        connection.start.assert_called_once()
        connection.request.assert_awaited_once_with(
            PROJECT_CHANGED,
            {
                "configuration": "Debug",
                "project": "/proj/App.fsproj",
                "fableLibrary": "/proj/node_modules/lib",
                "exclude": ["Fable.Core"],
                "noReflection": True,
            },
        )

    @pytest.mark.asyncio
    async def test_project_data(self):
        client, _ = make_client(
            {"case": "Success", "fields": [["/proj/A.fs", "/proj/B.fs"], [WARNING], ["/proj/Directory.Build.props"]]}
        )

        data = await client.init_project("Debug", "/proj/App.fsproj", "/lib")

        assert data.source_files == ["/proj/A.fs", "/proj/B.fs"]
        assert data.dependent_files == ["/proj/Directory.Build.props"]
        assert data.diagnostics[0].severity == DiagnosticSeverity.WARNING

    @pytest.mark.asyncio
    async def test_failure(self):
        client, _ = make_client({"case": "Failure", "fields": ["Project could not be cracked"]})

        with pytest.raises(CompilationError, match="could not be cracked"):
            await client.init_project("Debug", "/proj/App.fsproj", "/lib")


class TestCompile:
    @pytest.mark.asyncio
    async def test_compile_all(self):
        client, connection = make_client({"case": "Success", "fields": [{"/proj/A.fs": "export {};"}]})

        compiled = await client.compile_all()

        assert compiled == {"/proj/A.fs": "export {};"}
        connection.request.assert_awaited_once_with(INITIAL_COMPILE, {})

    @pytest.mark.asyncio
    async def test_compile_files_sends_sorted_names(self):
        client, connection = make_client({"case": "Success", "fields": [{"/proj/B.fs": "b", "/proj/A.fs": "a"}, []]})

        output = await client.compile_files({"/proj/B.fs", "/proj/A.fs"})

        connection.request.assert_awaited_once_with(COMPILE, {"fileNames": ["/proj/A.fs", "/proj/B.fs"]})
        assert output.compiled == {"/proj/A.fs": "a", "/proj/B.fs": "b"}
        assert output.diagnostics == []

    @pytest.mark.asyncio
    async def test_compile_failure(self):
        client, _ = make_client({"case": "Failure", "fields": ["type error"]})

        with pytest.raises(CompilationError) as exc_info:
            await client.compile_files(["/proj/A.fs"])

        assert exc_info.value.message == "type error"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        client, _ = make_client(TransportError("Daemon closed its output stream"))

        with pytest.raises(TransportError):
            await client.compile_all()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client, connection = make_client()
        await client.start()

        await client.close()
        await client.close()

        connection.close.assert_awaited_once()
        assert not client.is_running

    @pytest.mark.asyncio
    async def test_requests_after_close(self):
        client, connection = make_client()
        await client.close()

        with pytest.raises(TransportError, match="not running"):
            await client.compile_all()
        connection.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_spawn_failure(self, tmp_path):
        client = DaemonClient(DaemonConfig(path=str(tmp_path / "missing-daemon")))

        with pytest.raises(TransportError, match="Could not start"):
            await client.start()
        assert not client.is_running
