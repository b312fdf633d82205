"""Repository state management.

This package keeps a local working copy of a remote repository and exposes
branch-level operations (create, commit, merge, delete, staleness checks)
answered against the remote-tracking refs.

Classes:
    RepositoryManager: Owns the working copy and the session state.

Models:
    FileChange: A file to write as part of a commit.
    CommitDescriptor: Branch, message, files and parent branch of a commit.
    RepositorySession: State of one initialised repository.
    LookupResult: Found / not found / error outcome of a lookup.

Example:
    >>> from repostate.repository import FileChange, RepositoryManager
    >>> manager = RepositoryManager()
    >>> await manager.init_repo(config)
    >>> await manager.commit_files_to_branch(
    ...     "renovate/foo", [FileChange("package.json", data)], "Update foo"
    ... )
"""

from repostate.repository._manager import (
    CLONE_DEPTH,
    COMMIT_MESSAGE_LIMIT,
    REMOTE,
    EngineFactory,
    RepositoryManager,
    local_name,
    remote_ref,
)
from repostate.repository._models import (
    CommitDescriptor,
    FileChange,
    LookupResult,
    RepositorySession,
)
from repostate.repository._refresh import has_working_copy, select_refresh_strategy

__all__ = [
    "CLONE_DEPTH",
    "COMMIT_MESSAGE_LIMIT",
    "REMOTE",
    "CommitDescriptor",
    "EngineFactory",
    "FileChange",
    "LookupResult",
    "RepositoryManager",
    "RepositorySession",
    "has_working_copy",
    "local_name",
    "remote_ref",
    "select_refresh_strategy",
]
