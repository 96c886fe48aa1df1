# codesync/core/config/__init__.py
from codesync.core.config.loader import DEFAULT_CONFIG_PATH, load_config, load_config_dict
from codesync.core.config.schema import (
    ChunkingConfig,
    CodeSyncConfig,
    LoggingConfig,
    PluginConfig,
    RetryConfig,
    ScanConfig,
    SyncConfig,
    VectorDBConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_config_dict",
    "CodeSyncConfig",
    "PluginConfig",
    "VectorDBConfig",
    "ScanConfig",
    "ChunkingConfig",
    "SyncConfig",
    "RetryConfig",
    "LoggingConfig",
]
