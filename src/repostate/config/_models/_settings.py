# pyright: reportExplicitAny=false, reportAny=false
"""Settings container.

Settings is the process-wide configuration: how to log and where working
copies live. It is assembled from model defaults, an optional TOML file and
the environment, in increasing order of precedence.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repostate.config._loader import deep_merge, parse_env_vars, read_toml_file
from repostate.config._models._logging import LoggingConfig
from repostate.config._models._storage import StorageConfig
from repostate.exceptions import ConfigValidationError


class Settings(BaseModel):
    """Process-wide repostate settings.

    Attributes:
        logging: Logging configuration.
        storage: Working copy storage configuration.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, source: str | None = None) -> Self:
        """Validate raw, section-nested configuration.

        Args:
            data: Raw values; missing keys take the model defaults.
            source: Where the values came from, reported on failure.

        Raises:
            ConfigValidationError: For the first invalid value.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid configuration value for {key}: {first['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=first.get("input"),
                expected=first["type"],
                source=source,
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load settings from a TOML file alone (no environment)."""
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Self:
        """Load settings from the config file and the environment.

        Args:
            config_path: Optional TOML file. A missing file is skipped.
            environ: Environment to read. Defaults to os.environ.

        Raises:
            ConfigLoadError: If the TOML file cannot be parsed.
            ConfigValidationError: If a value fails validation.
        """
        file_values: dict[str, Any] = {}
        if config_path is not None and config_path.is_file():
            file_values = read_toml_file(config_path)

        source = str(config_path) if file_values else "env"
        merged = deep_merge(file_values, parse_env_vars(environ))
        return cls.from_dict(merged, source=source)
