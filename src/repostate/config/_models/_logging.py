"""Logging configuration model."""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Minimum severity that is written, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Rendering of each log line."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Minimum level written. REPOSTATE_DEBUG overrides it.
        format: One JSON object per line, or key=value console text.
        file: Log file path, appended to. Empty logs to stderr.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = Field(default="", description="Log file path; empty for stderr.")
