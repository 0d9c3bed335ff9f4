from fable_vite.infra.config.groups import BatchingConfig, DaemonConfig, ObservabilityConfig
from fable_vite.infra.config.settings import Settings, settings

__all__ = [
    # Settings
    "Settings",
    "settings",
    # Config Groups
    "BatchingConfig",
    "DaemonConfig",
    "ObservabilityConfig",
]
