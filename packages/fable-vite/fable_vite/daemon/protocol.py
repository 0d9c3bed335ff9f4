"""
Fable daemon wire protocol.

JSON-RPC 2.0 messages framed with ``Content-Length`` headers over stdio.
Every daemon method answers with an F# discriminated union serialized as
``{"case": "Success" | "Failure", "fields": [...]}``; it is parsed into the
``Success`` / ``Failure`` sum type below so callers never index raw arrays.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fable_vite.infra.exceptions import CompilationError, TransportError

# JSON-RPC methods exposed by the daemon
PROJECT_CHANGED = "fable/project-changed"
INITIAL_COMPILE = "fable/initial-compile"
COMPILE = "fable/compile"

HEADER_SEPARATOR = b"\r\n\r\n"
CONTENT_LENGTH = "content-length"


# ============================================================================
# Diagnostics
# ============================================================================


class DiagnosticSeverity(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"

    @classmethod
    def _missing_(cls, value: object):
        # The daemon is not consistent about casing ("error", "Error")
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
            if value.lower() in ("information", "hidden", "hint"):
                return cls.INFO
        return None


class DiagnosticRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_line: int = Field(alias="startLine")
    start_column: int = Field(alias="startColumn")
    end_line: int = Field(alias="endLine")
    end_column: int = Field(alias="endColumn")


class Diagnostic(BaseModel):
    """Compiler diagnostic. Never persisted, only reported."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    severity: DiagnosticSeverity
    code: str = Field(default="", alias="errorNumberText")
    message: str
    file: str = Field(default="", alias="fileName")
    range: DiagnosticRange

    def format(self) -> str:
        location = f"{self.file}({self.range.start_line},{self.range.start_column})"
        if self.code:
            return f"{location}: {self.code}: {self.message}"
        return f"{location}: {self.message}"


# ============================================================================
# Result sum type
# ============================================================================


@dataclass(frozen=True)
class Success:
    fields: tuple[Any, ...]


@dataclass(frozen=True)
class Failure:
    message: str


DaemonResult = Success | Failure


def parse_result(payload: Any) -> DaemonResult:
    """
    Parse a serialized discriminated union.

    Raises:
        TransportError: payload is not a union at all
    """
    if not isinstance(payload, dict):
        raise TransportError("Daemon result is not an object", details={"payload": repr(payload)[:200]})

    case = payload.get("case", payload.get("Case"))
    fields = payload.get("fields", payload.get("Fields", []))
    if case is None or not isinstance(fields, list):
        raise TransportError("Daemon result has no case/fields", details={"payload": repr(payload)[:200]})

    if case == "Success":
        return Success(fields=tuple(fields))

    if case == "Failure":
        message = fields[0] if fields and isinstance(fields[0], str) else "Unknown failure"
        return Failure(message=message)

    return Failure(message=f"Unexpected result case: {case}")


def expect_success(result: DaemonResult, method: str, arity: int) -> tuple[Any, ...]:
    """Unwrap ``Success`` fields, raising on ``Failure`` or a short field list."""
    if isinstance(result, Failure):
        raise CompilationError(result.message, method=method)
    if len(result.fields) < arity:
        raise TransportError(
            "Daemon result has too few fields",
            details={"method": method, "expected": arity, "actual": len(result.fields)},
        )
    return result.fields


def parse_diagnostics(raw: Any) -> list[Diagnostic]:
    if raw is None:
        return []
    try:
        return [Diagnostic.model_validate(item) for item in raw]
    except (ValidationError, TypeError) as e:
        raise TransportError("Malformed diagnostics", details={"cause": str(e)[:200]}) from e


def parse_artifacts(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise TransportError("Compiled files must be an object", details={"type": type(raw).__name__})
    return {str(path): code for path, code in raw.items() if isinstance(code, str)}


def parse_paths(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        raise TransportError("File list must be an array", details={"type": type(raw).__name__})
    return [str(p) for p in raw]


# ============================================================================
# Framing
# ============================================================================


def encode_message(message: dict[str, Any]) -> bytes:
    content = json.dumps(message).encode("utf-8")
    return f"Content-Length: {len(content)}\r\n\r\n".encode() + content


def parse_headers(header: bytes) -> int:
    """Return the Content-Length of a header block."""
    for line in header.decode("ascii", errors="replace").split("\r\n"):
        name, _, value = line.partition(":")
        if name.strip().lower() == CONTENT_LENGTH:
            try:
                return int(value.strip())
            except ValueError as e:
                raise TransportError("Invalid Content-Length", details={"header": line}) from e
    raise TransportError("Missing Content-Length header", details={"header": header[:200].decode(errors="replace")})


def decode_body(body: bytes) -> dict[str, Any]:
    try:
        message = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TransportError("Malformed JSON from daemon", details={"cause": str(e)}) from e
    if not isinstance(message, dict):
        raise TransportError("JSON-RPC message is not an object")
    return message
