"""Fable daemon bridge: wire protocol, connection and typed client."""

from fable_vite.daemon.client import CompileOutput, DaemonClient, ProjectData
from fable_vite.daemon.connection import JsonRpcConnection
from fable_vite.daemon.protocol import (
    DaemonResult,
    Diagnostic,
    DiagnosticRange,
    DiagnosticSeverity,
    Failure,
    Success,
    parse_result,
)

__all__ = [
    "CompileOutput",
    "DaemonClient",
    "DaemonResult",
    "Diagnostic",
    "DiagnosticRange",
    "DiagnosticSeverity",
    "Failure",
    "JsonRpcConnection",
    "ProjectData",
    "Success",
    "parse_result",
]
