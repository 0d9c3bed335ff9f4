from functools import cached_property
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from fable_vite.infra.config.groups import BatchingConfig, DaemonConfig, ObservabilityConfig


class Settings(BaseSettings):
    """
    fable-vite Settings

    Environment variables should use VITE_PLUGIN_FABLE_ prefix.
    Example: VITE_PLUGIN_FABLE_DEBUG=1, VITE_PLUGIN_FABLE_DAEMON_PATH=./bin/Fable.Daemon

    그룹화된 설정 접근:
        settings.daemon         # DaemonConfig
        settings.batching       # BatchingConfig
        settings.observability  # ObservabilityConfig
    """

    # NOTE: `.env` may be present but unreadable; treat it as "not provided".
    _dotenv_path = Path(".env")
    _env_file = ".env" if _dotenv_path.exists() and _dotenv_path.is_file() else None
    try:
        if _env_file is not None:
            _dotenv_path.open("r", encoding="utf-8").close()
    except OSError:
        _env_file = None

    model_config = SettingsConfigDict(
        env_file=_env_file,
        env_file_encoding="utf-8",
        env_prefix="VITE_PLUGIN_FABLE_",
        extra="ignore",
    )

    # ========================================================================
    # Grouped Config Accessors
    # ========================================================================

    @cached_property
    def daemon(self) -> DaemonConfig:
        """daemon 프로세스 설정 그룹."""
        return DaemonConfig(
            path=self.daemon_path,
            args=self.daemon_args,
            fable_library_dir=self.fable_library_dir,
            request_timeout_s=self.request_timeout_s,
            debug=self.debug,
        )

    @cached_property
    def batching(self) -> BatchingConfig:
        """배칭 설정 그룹."""
        return BatchingConfig(window_ms=self.batch_window_ms)

    @cached_property
    def observability(self) -> ObservabilityConfig:
        """관측성 설정 그룹."""
        return ObservabilityConfig(
            log_level="DEBUG" if self.debug else self.log_level,
            log_format=self.log_format,
        )

    # ========================================================================
    # Flat fields (env-backed)
    # ========================================================================

    debug: bool = False

    # Daemon
    daemon_path: str = "fable-daemon"
    daemon_args: list[str] = ["--stdio"]
    fable_library_dir: str = "node_modules/@fable-org/fable-library-js"
    request_timeout_s: float | None = None

    # Batching
    batch_window_ms: int = 50

    # Observability
    log_level: str = "INFO"
    log_format: str = "console"


settings = Settings()
