"""Refresh strategy selection.

init_repo() either refreshes an existing working copy with an incremental
fetch or replaces it with a full clone. The choice is made here, from the
state of the directory and the ephemeral flag passed in by the caller.
"""

from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from repostate.enums import RefreshStrategy


def has_working_copy(path: Path) -> bool:
    """Check whether path holds a non-bare git working copy.

    Args:
        path: Directory to inspect.

    Returns:
        True if git metadata for a working copy is present at path.
    """
    if not path.is_dir():
        return False
    try:
        repo = Repo(str(path))
    except NotGitRepository:
        return False
    try:
        return not repo.bare
    finally:
        repo.close()


def select_refresh_strategy(path: Path, *, ephemeral: bool) -> RefreshStrategy:
    """Choose how to bring the working copy at path up to date.

    Args:
        path: Working copy directory.
        ephemeral: True when working copies must never be reused (tests,
            throwaway environments).

    Returns:
        INCREMENTAL_FETCH if a working copy exists and ephemeral is False,
        CLONE otherwise.
    """
    if not ephemeral and has_working_copy(path):
        return RefreshStrategy.INCREMENTAL_FETCH
    return RefreshStrategy.CLONE
