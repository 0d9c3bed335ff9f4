"""
Host bundler surface.

Only the parts of the dev-server the orchestrator touches. Any object with the
right attributes works (duck typing), so adapters and tests need no base class.
"""

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Protocol


class HostLogger(Protocol):
    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...


class ModuleNode(Protocol):
    id: str | None
    url: str
    importers: Collection["ModuleNode"]


class ModuleGraph(Protocol):
    def get_module_by_id(self, module_id: str) -> ModuleNode | None: ...


class HotChannel(Protocol):
    def send(self, payload: dict[str, Any]) -> None: ...


class DevServer(Protocol):
    module_graph: ModuleGraph
    ws: HotChannel


@dataclass
class HostConfig:
    """Subset of the resolved bundler config."""

    root: str
    command: str = "serve"  # "serve" | "build"
    logger: HostLogger | None = None
