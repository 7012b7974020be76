"""Options for the JSON log sinks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from tradeseg.core.config import LoggingConfig

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class LogConfig(BaseModel):
    """Where JSON log lines go and from which level on."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    level: str = "INFO"
    console_output: bool = True
    # ``None`` writes to whatever ``sys.stderr`` is at emit time
    console_stream: Any = None
    file_output: bool = False
    file_path: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unsupported level '{value}', expected one of {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _file_needs_path(self) -> LogConfig:
        if self.file_output and not self.file_path:
            raise ValueError("file_output requires file_path")
        return self

    @classmethod
    def from_settings(cls, settings: LoggingConfig, **overrides: Any) -> LogConfig:
        """Translate the ``[logging]`` section of the engine configuration."""

        values: dict[str, Any] = {
            "level": settings.level,
            "file_output": settings.file is not None,
            "file_path": settings.file,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


__all__ = ["LOG_LEVELS", "LogConfig"]
