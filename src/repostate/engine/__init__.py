"""Version control engine abstraction.

Classes:
    VersionControlEngine: Runtime-checkable protocol RepositoryManager drives.
    GitEngine: Implementation running the git command line through anyio.

Models:
    BranchInfo: One listed branch.
    BranchSummary: Result of a branch listing.
    LogEntry: One commit from a history listing.
"""

from repostate.engine._git import GitEngine, parse_branch_listing, parse_log_output
from repostate.engine._models import BranchInfo, BranchSummary, LogEntry
from repostate.engine._protocol import VersionControlEngine

__all__ = [
    "BranchInfo",
    "BranchSummary",
    "GitEngine",
    "LogEntry",
    "VersionControlEngine",
    "parse_branch_listing",
    "parse_log_output",
]
