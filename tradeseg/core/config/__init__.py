"""Configuration management module."""

from tradeseg.core.config.settings import (
    ConfigManager,
    CorrectnessMode,
    EngineConfig,
    ExportConfig,
    LoggingConfig,
    ScoringConfig,
    SegmentationConfig,
    StorageConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "CorrectnessMode",
    "EngineConfig",
    "ExportConfig",
    "LoggingConfig",
    "ScoringConfig",
    "SegmentationConfig",
    "StorageConfig",
    "get_default_config",
    "load_config_from_env",
]
