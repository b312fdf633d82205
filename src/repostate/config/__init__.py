"""repostate configuration.

Two kinds of configuration exist. Settings is process-wide (logging and
where working copies live) and is loaded once from a TOML file and the
``REPOSTATE_*`` environment. RepositoryConfig describes one repository and
is passed to RepositoryManager.init_repo() each session.

Example:
    >>> from repostate.config import Settings
    >>> settings = Settings.load(environ={"REPOSTATE_TMPDIR": "/srv/clones"})
    >>> settings.storage.tmp_dir
    PosixPath('/srv/clones')
"""

from repostate.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._loader import (
    ENV_ALIASES,
    ENV_PREFIX,
    coerce_env_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    GitAuthor,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RepositoryConfig,
    Settings,
    StorageConfig,
)

__all__ = [
    "ENV_ALIASES",
    "ENV_PREFIX",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "GitAuthor",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RepositoryConfig",
    "Settings",
    "StorageConfig",
    "coerce_env_value",
    "deep_merge",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
]
