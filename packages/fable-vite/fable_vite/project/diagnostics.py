"""Routes compiler diagnostics and failures to structlog and the host logger."""

from collections.abc import Iterable

from fable_vite.daemon.protocol import Diagnostic, DiagnosticSeverity
from fable_vite.host import HostLogger
from fable_vite.infra.exceptions import FableViteError
from fable_vite.infra.observability import get_logger, log_error

logger = get_logger(__name__)


class DiagnosticReporter:
    def __init__(self, host_logger: HostLogger | None = None):
        self.host_logger = host_logger

    def report(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Every diagnostic is surfaced, whatever its severity."""
        for diagnostic in diagnostics:
            fields = {
                "code": diagnostic.code,
                "file": diagnostic.file,
                "line": diagnostic.range.start_line,
                "column": diagnostic.range.start_column,
            }
            text = diagnostic.format()

            if diagnostic.severity == DiagnosticSeverity.ERROR:
                logger.error("fsharp_error", detail=diagnostic.message, **fields)
                if self.host_logger:
                    self.host_logger.error(text)
            elif diagnostic.severity == DiagnosticSeverity.WARNING:
                logger.warning("fsharp_warning", detail=diagnostic.message, **fields)
                if self.host_logger:
                    self.host_logger.warn(text)
            else:
                logger.info("fsharp_info", detail=diagnostic.message, **fields)
                if self.host_logger:
                    self.host_logger.info(text)

    def report_failure(self, event: str, error: FableViteError, **extra) -> None:
        log_error(logger, event, error=error, **extra)
        if self.host_logger:
            self.host_logger.error(f"{event}: {error.message}")
