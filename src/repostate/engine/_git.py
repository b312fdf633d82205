"""Git command line engine.

This module implements VersionControlEngine by running the ``git`` binary
through anyio, so every call suspends the calling task instead of blocking
the event loop.
"""

import os
import subprocess
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Final

import anyio

from repostate.engine._models import BranchInfo, BranchSummary, LogEntry
from repostate.exceptions import RefNotFoundError, VcsCommandError

# stderr fragments git prints when a revision, ref or path does not exist.
# Matching relies on the C locale forced in the command environment.
_NOT_FOUND_MARKERS: Final = (
    "unknown revision",
    "bad revision",
    "bad sha1 reference",
    "not a valid object name",
    "invalid object name",
    "needed a single revision",
    "does not exist in",
    "exists on disk, but not in",
    "is not a symbolic ref",
    "no such ref",
    "remote ref does not exist",
    "couldn't find remote ref",
)

# Field separator for --format output
_FIELD_SEP: Final = "\x1f"

_BASE_ENV: Final = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_MERGE_AUTOEDIT": "no",
    "LC_ALL": "C",
}


def _is_not_found(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _NOT_FOUND_MARKERS)


def parse_branch_listing(output: str) -> BranchSummary:
    """Parse ``git branch --verbose`` output.

    Symbolic entries (``origin/HEAD -> origin/main``) and detached HEAD
    entries are skipped. Commit subjects may contain arbitrary text, so
    records are split on newlines only.

    Args:
        output: Raw command output.

    Returns:
        BranchSummary in listing order.
    """
    branches: list[BranchInfo] = []
    for raw_line in output.split("\n"):
        line = raw_line.rstrip()
        if not line.strip():
            continue
        current = line.startswith("* ")
        # "+ " marks a branch checked out in another worktree
        body = line[2:].strip() if line[:2] in ("* ", "+ ") else line.strip()
        parts = body.split(maxsplit=2)
        if body.startswith("(") or (len(parts) > 1 and parts[1] == "->"):
            continue
        branches.append(
            BranchInfo(
                name=parts[0],
                commit=parts[1] if len(parts) > 1 else "",
                label=parts[2] if len(parts) > 2 else "",  # noqa: PLR2004
                current=current,
            )
        )
    return BranchSummary(branches=tuple(branches))


def parse_log_output(output: str) -> list[LogEntry]:
    """Parse ``git log --format=%H%x1f%aI%x1f%s`` output.

    Args:
        output: Raw command output.

    Returns:
        LogEntry list, newest first.
    """
    entries: list[LogEntry] = []
    # %s never contains "\n"; other line breaks are part of the subject
    for line in output.split("\n"):
        if not line:
            continue
        sha, author_date, subject = line.split(_FIELD_SEP, 2)
        entries.append(
            LogEntry(
                sha=sha,
                author_date=datetime.fromisoformat(author_date),
                subject=subject,
            )
        )
    return entries


class GitEngine:
    """VersionControlEngine backed by the git command line.

    Attributes:
        working_dir: Directory every command runs in.
    """

    __slots__: Final = ("_env", "_git", "_working_dir")

    def __init__(
        self,
        working_dir: Path,
        *,
        git_binary: str = "git",
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            working_dir: Directory every command runs in. It must exist by
                the time the first command runs.
            git_binary: Name or path of the git executable.
            env: Extra environment variables for every command.
        """
        self._working_dir = working_dir
        self._git = git_binary
        self._env = {**os.environ, **_BASE_ENV, **(env or {})}

    @property
    def working_dir(self) -> Path:
        """Directory every command runs in."""
        return self._working_dir

    async def _run(self, args: Sequence[str]) -> bytes:
        """Run git with args and return raw standard output.

        Raises:
            RefNotFoundError: If git reports a missing revision, ref or path.
            VcsCommandError: If git exits non-zero or cannot be started.
        """
        argv = list(args)
        try:
            result = await anyio.run_process(
                [self._git, *argv],
                cwd=self._working_dir,
                env=self._env,
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except OSError as e:
            msg = f"Failed to run git {' '.join(argv)}: {e}"
            raise VcsCommandError(msg, argv=argv) from e

        if result.returncode != 0:
            stdout = result.stdout.decode("utf-8", errors="replace")
            stderr = result.stderr.decode("utf-8", errors="replace")
            msg = f"git {' '.join(argv)} failed ({result.returncode}): {stderr.strip()}"
            error_type = RefNotFoundError if _is_not_found(stderr) else VcsCommandError
            raise error_type(
                msg,
                argv=argv,
                returncode=result.returncode,
                stdout=stdout,
                stderr=stderr,
            )
        return result.stdout

    async def _run_text(self, args: Sequence[str]) -> str:
        return (await self._run(args)).decode("utf-8", errors="replace")

    async def clone(self, url: str, options: Sequence[str] = ()) -> None:
        _ = await self._run(["clone", *options, "--", url, "."])

    async def fetch(
        self,
        remote: str,
        options: Sequence[str] = (),
        refspecs: Sequence[str] = (),
    ) -> None:
        _ = await self._run(["fetch", *options, remote, *refspecs])

    async def raw(self, args: Sequence[str]) -> str:
        return await self._run_text(args)

    async def checkout(self, args: Sequence[str]) -> None:
        _ = await self._run(["checkout", *args])

    async def reset(self, mode: str = "hard") -> None:
        _ = await self._run(["reset", f"--{mode}"])

    async def add(self, paths: Sequence[str]) -> None:
        _ = await self._run(["add", "--", *paths])

    async def commit(self, message: str) -> None:
        _ = await self._run(["commit", "-m", message])

    async def push(
        self, remote: str, ref: str, options: Sequence[str] = ()
    ) -> None:
        _ = await self._run(["push", *options, remote, ref])

    async def merge(self, refs: Sequence[str], options: Sequence[str] = ()) -> None:
        _ = await self._run(["merge", *options, *refs])

    async def branch(self, options: Sequence[str] = ()) -> BranchSummary:
        output = await self._run_text(["branch", "--no-color", *options])
        return parse_branch_listing(output)

    async def revparse(self, ref: str) -> str:
        output = await self._run_text(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        return output.strip()

    async def log(
        self, max_count: int = 10, refs: Sequence[str] = ()
    ) -> list[LogEntry]:
        output = await self._run_text(
            [
                "log",
                f"--max-count={max_count}",
                "--format=%H%x1f%aI%x1f%s",
                *refs,
            ]
        )
        return parse_log_output(output)

    async def show(self, args: Sequence[str]) -> bytes:
        return await self._run(["show", *args])
