"""Version control engine protocol.

This module defines a runtime-checkable Protocol for the engine that
RepositoryManager drives. GitEngine satisfies it; tests substitute mocks.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from repostate.engine._models import BranchSummary, LogEntry


@runtime_checkable
class VersionControlEngine(Protocol):
    """Async capability object bound to one local working directory.

    Every method may fail with VcsCommandError. A missing revision, ref or
    path is reported as RefNotFoundError so callers can tell absence apart
    from other failures.
    """

    @property
    def working_dir(self) -> Path:
        """Directory the engine operates in."""
        ...

    async def clone(self, url: str, options: Sequence[str] = ()) -> None:
        """Clone url into the working directory."""
        ...

    async def fetch(
        self,
        remote: str,
        options: Sequence[str] = (),
        refspecs: Sequence[str] = (),
    ) -> None:
        """Fetch refspecs from a remote name or URL."""
        ...

    async def raw(self, args: Sequence[str]) -> str:
        """Run an arbitrary command and return its standard output."""
        ...

    async def checkout(self, args: Sequence[str]) -> None:
        """Check out branches or revisions (e.g. ``["-B", name, start]``)."""
        ...

    async def reset(self, mode: str = "hard") -> None:
        """Reset the working tree and index in the given mode."""
        ...

    async def add(self, paths: Sequence[str]) -> None:
        """Stage repository-relative paths."""
        ...

    async def commit(self, message: str) -> None:
        """Commit staged changes."""
        ...

    async def push(
        self, remote: str, ref: str, options: Sequence[str] = ()
    ) -> None:
        """Push a ref to a remote."""
        ...

    async def merge(self, refs: Sequence[str], options: Sequence[str] = ()) -> None:
        """Merge refs into the checked out branch."""
        ...

    async def branch(self, options: Sequence[str] = ()) -> BranchSummary:
        """List branches."""
        ...

    async def revparse(self, ref: str) -> str:
        """Resolve a ref to a full commit SHA."""
        ...

    async def log(
        self, max_count: int = 10, refs: Sequence[str] = ()
    ) -> list[LogEntry]:
        """List commits, newest first."""
        ...

    async def show(self, args: Sequence[str]) -> bytes:
        """Show an object (``rev:path`` gives raw file content)."""
        ...
