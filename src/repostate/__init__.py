"""repostate: working copy and branch management for dependency-update bots.

Example:
    >>> from repostate import RepositoryConfig, RepositoryManager, Settings
    >>> manager = RepositoryManager(Settings.load())
    >>> await manager.init_repo(
    ...     RepositoryConfig(
    ...         remote_url="https://github.com/owner/name.git",
    ...         repository="owner/name",
    ...         platform="github",
    ...     )
    ... )
    >>> await manager.get_all_branches("renovate/")
    ['renovate/foo-1.x']
"""

from repostate.config import GitAuthor, RepositoryConfig, Settings
from repostate.engine import GitEngine, VersionControlEngine
from repostate.enums import LookupStatus, RefreshStrategy, RepositoryOperation
from repostate.exceptions import (
    BaseBranchUnresolvedError,
    CloneError,
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    MergeError,
    RefNotFoundError,
    RepositoryNotInitializedError,
    RepositoryOperationError,
    RepoStateError,
    VcsCommandError,
)
from repostate.repository import (
    CommitDescriptor,
    FileChange,
    LookupResult,
    RepositoryManager,
    RepositorySession,
)

__all__ = [
    "BaseBranchUnresolvedError",
    "CloneError",
    "CommitDescriptor",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "FileChange",
    "GitAuthor",
    "GitEngine",
    "LookupResult",
    "LookupStatus",
    "MergeError",
    "RefNotFoundError",
    "RefreshStrategy",
    "RepoStateError",
    "RepositoryConfig",
    "RepositoryManager",
    "RepositoryNotInitializedError",
    "RepositoryOperation",
    "RepositorySession",
    "Settings",
    "VcsCommandError",
    "VersionControlEngine",
]
