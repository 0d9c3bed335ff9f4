"""
Test Fakes Module

Provides fake implementations of the daemon client and the host dev-server.
"""

from tests.fakes.fake_daemon import (
    FakeDaemonClient,
    FakeDevServer,
    FakeHostLogger,
    FakeHotChannel,
    FakeModule,
    FakeModuleGraph,
)

__all__ = [
    "FakeDaemonClient",
    "FakeDevServer",
    "FakeHostLogger",
    "FakeHotChannel",
    "FakeModule",
    "FakeModuleGraph",
]
