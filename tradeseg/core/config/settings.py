"""Configuration management for the segment engine."""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

from tradeseg.core.exceptions import ConfigurationError


class CorrectnessMode(str, Enum):
    """How feedback trials are judged correct."""

    # trial correct when non-zero, segment correct when any trial is
    REVISED = "revised"
    # trial correct when >= 0.5, segment correct when every trial is
    LEGACY = "legacy"


@dataclass
class SegmentationConfig:
    """Windowing parameters for the segmenter."""

    window_size: int = 120
    min_points: int = 6
    max_segments_per_day: int = 6
    emit_partial_tail: bool = True

    def validate(self) -> None:
        if self.min_points < 2:
            raise ConfigurationError("min_points must be at least 2", {"min_points": self.min_points})
        if self.window_size < self.min_points:
            raise ConfigurationError(
                "window_size must not be smaller than min_points",
                {"window_size": self.window_size, "min_points": self.min_points},
            )
        if self.max_segments_per_day <= 0:
            raise ConfigurationError(
                "max_segments_per_day must be positive",
                {"max_segments_per_day": self.max_segments_per_day},
            )


@dataclass
class ScoringConfig:
    """Trajectory scoring parameters."""

    high_intensity_threshold: float = 0.6
    strong_result_threshold: float = 0.9
    correctness_mode: CorrectnessMode = CorrectnessMode.REVISED

    def __post_init__(self) -> None:
        if not isinstance(self.correctness_mode, CorrectnessMode):
            try:
                self.correctness_mode = CorrectnessMode(str(self.correctness_mode).lower())
            except ValueError as exc:
                raise ConfigurationError(
                    f"unknown correctness mode '{self.correctness_mode}'",
                    {"allowed": [mode.value for mode in CorrectnessMode]},
                ) from exc

    def validate(self) -> None:
        if self.high_intensity_threshold < 0:
            raise ConfigurationError("high_intensity_threshold must not be negative")
        if self.strong_result_threshold < 0:
            raise ConfigurationError("strong_result_threshold must not be negative")


@dataclass
class StorageConfig:
    """DuckDB storage settings."""

    database: str = ":memory:"
    threads: int = 1


@dataclass
class ExportConfig:
    """Classified segment CSV export settings."""

    timezone: str = "Europe/Paris"
    next_points: int = 30

    def validate(self) -> None:
        if self.next_points < 0:
            raise ConfigurationError("next_points must not be negative", {"next_points": self.next_points})
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"unknown timezone '{self.timezone}'", {"timezone": self.timezone}) from exc


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class EngineConfig:
    """Top-level engine configuration."""

    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def __post_init__(self) -> None:
        self.segmentation.validate()
        self.scoring.validate()
        self.export.validate()

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> EngineConfig:
        """Build a configuration from a nested dictionary."""

        try:
            return cls(
                segmentation=SegmentationConfig(**config_dict.get("segmentation", {})),
                scoring=ScoringConfig(**config_dict.get("scoring", {})),
                storage=StorageConfig(**config_dict.get("storage", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
                export=ExportConfig(**config_dict.get("export", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"invalid configuration: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        scoring = asdict(self.scoring)
        scoring["correctness_mode"] = self.scoring.correctness_mode.value
        return {
            "segmentation": asdict(self.segmentation),
            "scoring": scoring,
            "storage": asdict(self.storage),
            "logging": asdict(self.logging),
            "export": asdict(self.export),
        }


class ConfigManager:
    """Loads the engine configuration from a TOML file plus environment overrides."""

    def __init__(self, config_path: Path | None = None):
        """Initialise the manager.

        Args:
            config_path: TOML file to read; defaults to ``~/.tradeseg/config.toml``.
        """
        self.config_path = config_path or Path.home() / ".tradeseg" / "config.toml"
        self.config = self._load_config()

    def _load_config(self) -> EngineConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Failed to load config from {}: {}", self.config_path, e)
                config_dict = {}

        _deep_update(config_dict, load_config_from_env())
        return EngineConfig.from_dict(config_dict)

    def get_config(self) -> EngineConfig:
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply nested overrides, e.g. ``update_config(scoring={"high_intensity_threshold": 0.7})``."""

        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = EngineConfig.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> EngineConfig:
    return EngineConfig()


def load_config_from_env() -> dict[str, Any]:
    """Read ``TRADESEG_*`` environment overrides."""

    config: dict[str, Any] = {}

    segmentation: dict[str, Any] = {}
    window_size = os.getenv("TRADESEG_WINDOW_SIZE")
    if window_size is not None:
        segmentation["window_size"] = int(window_size)
    min_points = os.getenv("TRADESEG_MIN_POINTS")
    if min_points is not None:
        segmentation["min_points"] = int(min_points)
    max_per_day = os.getenv("TRADESEG_MAX_SEGMENTS_PER_DAY")
    if max_per_day is not None:
        segmentation["max_segments_per_day"] = int(max_per_day)
    partial_tail = os.getenv("TRADESEG_EMIT_PARTIAL_TAIL")
    if partial_tail is not None:
        segmentation["emit_partial_tail"] = partial_tail.lower() == "true"
    if segmentation:
        config["segmentation"] = segmentation

    scoring: dict[str, Any] = {}
    high_intensity = os.getenv("TRADESEG_HIGH_INTENSITY_THRESHOLD")
    if high_intensity is not None:
        scoring["high_intensity_threshold"] = float(high_intensity)
    correctness_mode = os.getenv("TRADESEG_CORRECTNESS_MODE")
    if correctness_mode is not None:
        scoring["correctness_mode"] = correctness_mode
    if scoring:
        config["scoring"] = scoring

    database = os.getenv("TRADESEG_DATABASE")
    if database is not None:
        config["storage"] = {"database": database}

    logging_config: dict[str, Any] = {}
    level = os.getenv("TRADESEG_LOGGING_LEVEL")
    if level is not None:
        logging_config["level"] = level
    log_file = os.getenv("TRADESEG_LOGGING_FILE")
    if log_file is not None:
        logging_config["file"] = log_file
    if logging_config:
        config["logging"] = logging_config

    timezone = os.getenv("TRADESEG_EXPORT_TIMEZONE")
    if timezone is not None:
        config["export"] = {"timezone": timezone}

    return config
