"""Version control engine output models.

This module defines data structures for parsed engine output.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class BranchInfo:
    """A single branch as listed by the engine.

    Attributes:
        name: Branch name as listed (e.g. ``origin/main`` for remotes).
        commit: Abbreviated commit SHA of the branch tip.
        label: Remainder of the verbose listing (usually the subject line).
        current: Whether this branch is checked out.
    """

    name: str
    commit: str
    label: str = ""
    current: bool = False


@dataclass(frozen=True, slots=True)
class BranchSummary:
    """Result of a branch listing.

    Attributes:
        branches: Branches in listing order (tuple preserves order).
    """

    branches: tuple[BranchInfo, ...] = ()

    @property
    def all(self) -> list[str]:
        """Names of all listed branches."""
        return [branch.name for branch in self.branches]

    @property
    def current(self) -> str | None:
        """Name of the checked out branch, if it was listed."""
        for branch in self.branches:
            if branch.current:
                return branch.name
        return None


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One commit from a history listing.

    Attributes:
        sha: Full commit SHA hex string.
        author_date: Author timestamp with its original UTC offset.
        subject: First line of the commit message.
    """

    sha: str
    author_date: datetime
    subject: str
