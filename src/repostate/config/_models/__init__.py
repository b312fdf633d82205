"""Configuration models."""

from repostate.config._models._logging import LogFormat, LoggingConfig, LogLevel
from repostate.config._models._repository import GitAuthor, RepositoryConfig
from repostate.config._models._settings import Settings
from repostate.config._models._storage import StorageConfig

__all__ = [
    "GitAuthor",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RepositoryConfig",
    "Settings",
    "StorageConfig",
]
