"""Repository models.

This module defines the data structures RepositoryManager accepts and
returns, and the session state it owns.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from repostate.config import RepositoryConfig
from repostate.enums import LookupStatus, RefreshStrategy
from repostate.exceptions import VcsCommandError


@dataclass(frozen=True, slots=True)
class FileChange:
    """A file to write as part of a commit.

    Attributes:
        name: Repository-relative path (POSIX separators).
        contents: Raw file contents; str is written as UTF-8.
    """

    name: str
    contents: bytes | str

    def __post_init__(self) -> None:
        path = PurePosixPath(self.name)
        if not path.parts or path.is_absolute() or ".." in path.parts:
            msg = f"File path must be relative to the repository root: {self.name!r}"
            raise ValueError(msg)
        if path.parts[0] == ".git":
            msg = f"File path must not point into git metadata: {self.name!r}"
            raise ValueError(msg)

    @property
    def data(self) -> bytes:
        """Contents as bytes."""
        if isinstance(self.contents, str):
            return self.contents.encode("utf-8")
        return self.contents


@dataclass(frozen=True, slots=True)
class CommitDescriptor:
    """A full rewrite of a branch relative to its parent branch.

    Attributes:
        branch_name: Branch to (re)create.
        message: Commit message.
        files: Files to write, in write order.
        parent_branch: Branch to start from. None means the base branch.
    """

    branch_name: str
    message: str
    files: tuple[FileChange, ...]
    parent_branch: str | None = None


@dataclass(slots=True)
class RepositorySession:
    """State of one initialised repository.

    Everything except base_branch is fixed for the lifetime of the session.

    Attributes:
        config: Configuration passed to init_repo().
        local_path: Working copy directory.
        base_branch: Resolved base branch name.
        strategy: How the working copy was brought up to date.
    """

    config: RepositoryConfig
    local_path: Path
    base_branch: str
    strategy: RefreshStrategy

    @property
    def repository(self) -> str:
        """Repository identifier."""
        return self.config.repository


@dataclass(frozen=True, slots=True)
class LookupResult[T]:
    """Outcome of resolving something against a remote-tracking ref.

    Distinguishes "does not exist" from "could not be determined" so the
    public API can map absence to a sentinel while still reporting errors.

    Attributes:
        status: FOUND, NOT_FOUND or ERROR.
        value: The resolved value when FOUND.
        error: The engine error when NOT_FOUND or ERROR.
    """

    status: LookupStatus
    value: T | None = None
    error: VcsCommandError | None = field(default=None, compare=False)

    @classmethod
    def found(cls, value: T) -> "LookupResult[T]":
        """Result for a resolved value."""
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def not_found(cls, error: VcsCommandError | None = None) -> "LookupResult[T]":
        """Result for a target that does not exist."""
        return cls(status=LookupStatus.NOT_FOUND, error=error)

    @classmethod
    def failed(cls, error: VcsCommandError) -> "LookupResult[T]":
        """Result for a lookup that could not be completed."""
        return cls(status=LookupStatus.ERROR, error=error)

    @property
    def is_found(self) -> bool:
        """Whether the value was resolved."""
        return self.status is LookupStatus.FOUND
