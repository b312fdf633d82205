"""Repository state manager.

This module provides RepositoryManager, which keeps one local working copy
of a remote repository and exposes branch-level operations on it. Queries
about branches and files are answered from the remote-tracking refs
(``origin/<branch>``), never from local branches, so the remote's view as
of the last fetch is always the source of truth.

The working tree is shared mutable state: operations on one manager must
be awaited one at a time.
"""

import time
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

import anyio
import anyio.to_thread
from structlog.typing import FilteringBoundLogger

from repostate.config import RepositoryConfig, Settings
from repostate.engine import GitEngine, VersionControlEngine
from repostate.enums import LookupStatus, RefreshStrategy, RepositoryOperation
from repostate.exceptions import (
    BaseBranchUnresolvedError,
    CloneError,
    MergeError,
    RefNotFoundError,
    RepositoryNotInitializedError,
    RepositoryOperationError,
    VcsCommandError,
)
from repostate.repository._models import (
    CommitDescriptor,
    FileChange,
    LookupResult,
    RepositorySession,
)
from repostate.repository._refresh import select_refresh_strategy
from repostate.utils._logging import create_logger_from_config
from repostate.utils._paths import compute_local_path, empty_directory

REMOTE: Final = "origin"
_REMOTE_PREFIX: Final = f"{REMOTE}/"
_REMOTE_HEAD_REF: Final = f"refs/remotes/{REMOTE}/HEAD"

# Two commits of history are enough for commit message and time queries
CLONE_DEPTH: Final = 2
COMMIT_MESSAGE_LIMIT: Final = 10

type EngineFactory = Callable[[Path], VersionControlEngine]


def local_name(branch_name: str) -> str:
    """Strip the remote-tracking prefix from a branch name.

    Args:
        branch_name: Branch name, e.g. ``origin/feature/x``.

    Returns:
        The name without ``origin/``, e.g. ``feature/x``.
    """
    return branch_name.removeprefix(_REMOTE_PREFIX)


def remote_ref(branch_name: str) -> str:
    """Get the fully qualified remote-tracking ref for a branch."""
    return f"refs/remotes/{REMOTE}/{branch_name}"


class RepositoryManager:
    """Manages the local working copy of one remote repository.

    Call init_repo() once before anything else. Calling it again discards
    the in-memory session and rebuilds it, reusing the directory on disk.

    Example:
        >>> manager = RepositoryManager(Settings.load())
        >>> await manager.init_repo(
        ...     RepositoryConfig(remote_url=url, repository="owner/name")
        ... )
        >>> if not await manager.branch_exists("deps/update-foo"):
        ...     await manager.commit_files_to_branch(
        ...         "deps/update-foo",
        ...         [FileChange("package.json", contents)],
        ...         "Update foo",
        ...     )
    """

    __slots__: Final = ("_engine", "_engine_factory", "_logger", "_session", "_settings")

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        engine_factory: EngineFactory = GitEngine,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            settings: Process-wide settings. Defaults to built-in defaults;
                the environment is not consulted here.
            engine_factory: Builds the engine bound to a working copy
                directory. Called once per init_repo().
            logger: Logger to use. Defaults to one built from settings.logging.
        """
        self._settings: Settings = settings if settings is not None else Settings()
        self._engine_factory: EngineFactory = engine_factory
        self._logger: FilteringBoundLogger = (
            logger
            if logger is not None
            else create_logger_from_config(self._settings.logging)
        )
        self._engine: VersionControlEngine | None = None
        self._session: RepositorySession | None = None

    # =========================================================================
    # Session State
    # =========================================================================

    @property
    def session(self) -> RepositorySession:
        """The current session.

        Raises:
            RepositoryNotInitializedError: If init_repo() has not completed.
        """
        if self._session is None:
            msg = "Repository is not initialised; call init_repo() first"
            raise RepositoryNotInitializedError(msg)
        return self._session

    @property
    def engine(self) -> VersionControlEngine:
        """The engine bound to the current working copy.

        Raises:
            RepositoryNotInitializedError: If init_repo() has not completed.
        """
        if self._engine is None:
            msg = "Repository is not initialised; call init_repo() first"
            raise RepositoryNotInitializedError(msg)
        return self._engine

    @property
    def base_branch(self) -> str:
        """The resolved base branch name."""
        return self.session.base_branch

    @property
    def _log(self) -> FilteringBoundLogger:
        if self._session is None:
            return self._logger
        return self._logger.bind(repository=self._session.repository)

    def set_base_branch(self, branch_name: str | None) -> None:
        """Change the base branch used by later operations.

        Args:
            branch_name: New base branch. Empty values are ignored.
        """
        session = self.session
        if branch_name:
            self._log.debug("Setting base branch", base_branch=branch_name)
            session.base_branch = branch_name

    def clean_repo(self) -> None:
        """Drop the in-memory session. The working copy on disk is kept."""
        self._engine = None
        self._session = None

    # =========================================================================
    # Initialisation & Refresh
    # =========================================================================

    async def init_repo(self, config: RepositoryConfig) -> RepositorySession:
        """Bring the local working copy of config.remote_url up to date.

        An existing working copy is refreshed with a shallow fetch; if there
        is none, or the fetch fails, the directory is emptied and cloned
        again.

        Args:
            config: Repository configuration.

        Returns:
            The new session.

        Raises:
            CloneError: If the full clone fails.
            RepositoryOperationError: If writing the commit identity fails.
            BaseBranchUnresolvedError: If no base branch was configured and
                the remote's default branch cannot be determined.
        """
        self.clean_repo()
        storage = self._settings.storage
        local_path = compute_local_path(
            storage.tmp_dir, config.platform, config.repository
        )
        log = self._logger.bind(repository=config.repository)
        log.info("Initialising git repository", local_path=str(local_path))

        strategy = select_refresh_strategy(local_path, ephemeral=storage.ephemeral)
        engine = self._engine_factory(local_path)

        if strategy is RefreshStrategy.INCREMENTAL_FETCH:
            try:
                await self._fetch(engine, config, log)
            except VcsCommandError as e:
                log.error("git fetch error", error=str(e))  # noqa: TRY400
                strategy = RefreshStrategy.CLONE

        if strategy is RefreshStrategy.CLONE:
            await self._clone(engine, config, local_path, log)

        if config.git_author is not None:
            with self._fatal(config.repository, RepositoryOperation.CONFIGURE):
                _ = await engine.raw(["config", "user.name", config.git_author.name])
                _ = await engine.raw(
                    ["config", "user.email", config.git_author.address]
                )
                # Commit signing is not supported
                _ = await engine.raw(["config", "commit.gpgsign", "false"])

        base_branch = config.base_branch or await self._resolve_default_branch(
            engine, config.repository
        )

        self._engine = engine
        self._session = RepositorySession(
            config=config,
            local_path=local_path,
            base_branch=base_branch,
            strategy=strategy,
        )
        log.info(
            "Repository initialised", base_branch=base_branch, strategy=str(strategy)
        )
        return self._session

    async def _fetch(
        self,
        engine: VersionControlEngine,
        config: RepositoryConfig,
        log: FilteringBoundLogger,
    ) -> None:
        start = time.perf_counter()
        _ = await engine.raw(["remote", "set-url", REMOTE, config.remote_url])
        await engine.fetch(
            REMOTE,
            [f"--depth={CLONE_DEPTH}", "--prune"],
            [f"+refs/heads/*:refs/remotes/{REMOTE}/*"],
        )
        _ = await engine.raw(["remote", "prune", REMOTE])
        _ = await engine.raw(["remote", "set-head", REMOTE, "--auto"])
        log.info("git fetch completed", fetch_seconds=round(time.perf_counter() - start))

    async def _clone(
        self,
        engine: VersionControlEngine,
        config: RepositoryConfig,
        local_path: Path,
        log: FilteringBoundLogger,
    ) -> None:
        start = time.perf_counter()
        with self._fatal(
            config.repository, RepositoryOperation.CLONE, error_type=CloneError
        ):
            await anyio.to_thread.run_sync(empty_directory, local_path)
            await engine.clone(
                config.remote_url, [f"--depth={CLONE_DEPTH}", "--no-single-branch"]
            )
        log.info("git clone completed", clone_seconds=round(time.perf_counter() - start))

    async def _resolve_default_branch(
        self, engine: VersionControlEngine, repository: str
    ) -> str:
        with self._fatal(
            repository,
            RepositoryOperation.RESOLVE_BASE_BRANCH,
            error_type=BaseBranchUnresolvedError,
        ):
            output = await engine.raw(["symbolic-ref", _REMOTE_HEAD_REF])
        return output.strip().removeprefix(f"refs/remotes/{REMOTE}/")

    # =========================================================================
    # Lookups (absence is a value, not an error)
    # =========================================================================

    async def _lookup_branch(self, branch_name: str) -> LookupResult[str]:
        try:
            sha = await self.engine.revparse(remote_ref(branch_name))
        except RefNotFoundError as e:
            return LookupResult.not_found(e)
        except VcsCommandError as e:
            return LookupResult.failed(e)
        return LookupResult.found(sha)

    async def _lookup_file(self, file_path: str, branch_name: str) -> LookupResult[bytes]:
        try:
            content = await self.engine.show([f"{_REMOTE_PREFIX}{branch_name}:{file_path}"])
        except RefNotFoundError as e:
            return LookupResult.not_found(e)
        except VcsCommandError as e:
            return LookupResult.failed(e)
        return LookupResult.found(content)

    async def _lookup_commit_time(self, branch_name: str) -> LookupResult[datetime]:
        try:
            output = await self.engine.show(
                ["-s", "--format=%aI", f"{_REMOTE_PREFIX}{branch_name}"]
            )
        except RefNotFoundError as e:
            return LookupResult.not_found(e)
        except VcsCommandError as e:
            return LookupResult.failed(e)
        try:
            return LookupResult.found(datetime.fromisoformat(output.decode().strip()))
        except ValueError:
            msg = f"Unparseable commit time for {branch_name}: {output!r}"
            return LookupResult.failed(VcsCommandError(msg, stdout=output.decode()))

    # =========================================================================
    # Branch Existence & Listing
    # =========================================================================

    async def branch_exists(self, branch_name: str) -> bool:
        """Check whether the remote has a branch.

        Args:
            branch_name: Branch name without the remote prefix.

        Returns:
            True if ``origin/<branch_name>`` resolves. Failures count as
            absence and are never raised.
        """
        result = await self._lookup_branch(branch_name)
        if result.status is LookupStatus.ERROR:
            self._log.warning(
                "Branch lookup failed", branch=branch_name, error=str(result.error)
            )
        return result.is_found

    async def get_all_branches(self, branch_prefix: str = "") -> list[str]:
        """List remote branches whose name starts with branch_prefix.

        Args:
            branch_prefix: Name prefix, e.g. ``renovate/``.

        Returns:
            Matching branch names without the remote prefix. Order is not
            guaranteed.
        """
        with self._fatal(self.session.repository, RepositoryOperation.LIST_BRANCHES):
            summary = await self.engine.branch(["--remotes", "--verbose"])
        return [
            name
            for name in (local_name(b) for b in summary.all)
            if name.startswith(branch_prefix)
        ]

    async def is_branch_stale(self, branch_name: str) -> bool:
        """Check whether the base branch has moved past a branch.

        Args:
            branch_name: Branch name without the remote prefix.

        Returns:
            True if ``origin/<branch_name>`` does not contain the tip of the
            base branch.
        """
        base_branch = self.base_branch
        with self._fatal(
            self.session.repository, RepositoryOperation.CHECK_STALE, branch_name
        ):
            summary = await self.engine.branch(
                ["--remotes", "--verbose", "--contains", f"{_REMOTE_PREFIX}{base_branch}"]
            )
        return branch_name not in {local_name(b) for b in summary.all}

    async def get_file_list(self, branch_name: str | None = None) -> list[str]:
        """List every tracked file on a branch.

        Args:
            branch_name: Branch to list. Defaults to the base branch.

        Returns:
            Repository-relative paths, or an empty list if the branch does
            not exist.
        """
        branch = branch_name or self.base_branch
        if not await self.branch_exists(branch):
            return []
        with self._fatal(
            self.session.repository, RepositoryOperation.LIST_FILES, branch
        ):
            # Unquoted paths so results can be passed back to get_file()
            output = await self.engine.raw(
                [
                    "-c",
                    "core.quotePath=false",
                    "ls-tree",
                    "-r",
                    "--name-only",
                    f"{_REMOTE_PREFIX}{branch}",
                ]
            )
        return [line for line in output.split("\n") if line]

    async def get_file(
        self, file_path: str, branch_name: str | None = None
    ) -> bytes | None:
        """Read a file as of a branch's remote-tracking tip.

        Args:
            file_path: Repository-relative path.
            branch_name: Branch to read from. Defaults to the base branch.

        Returns:
            The raw file content, or None if the branch or the file does
            not exist. Failures are never raised.
        """
        if branch_name and not await self.branch_exists(branch_name):
            self._log.warning("getFile branch does not exist", branch=branch_name)
            return None

        branch = branch_name or self.base_branch
        result = await self._lookup_file(file_path, branch)
        if result.status is LookupStatus.ERROR:
            self._log.warning(
                "File lookup failed",
                branch=branch,
                file=file_path,
                error=str(result.error),
            )
        return result.value

    # =========================================================================
    # Branch Creation, Commit & Push
    # =========================================================================

    async def create_branch(self, branch_name: str, sha: str) -> None:
        """Create or move a branch to a commit and force-push it.

        Uncommitted changes in the working copy are discarded.

        Args:
            branch_name: Branch to create or move.
            sha: Commit to point the branch at.

        Raises:
            RepositoryOperationError: If any step fails.
        """
        engine = self.engine
        with self._fatal(
            self.session.repository, RepositoryOperation.CREATE_BRANCH, branch_name
        ):
            await engine.reset("hard")
            await engine.checkout(["-B", branch_name, sha])
            await engine.push(REMOTE, branch_name, ["--force"])
        self._log.info("Created branch", branch=branch_name, sha=sha)

    async def commit_files_to_branch(
        self,
        branch_name: str,
        files: Iterable[FileChange],
        message: str,
        parent_branch: str | None = None,
    ) -> None:
        """Rewrite a branch as parent_branch plus one commit of files.

        The branch is recreated from ``origin/<parent_branch>`` every time,
        so retries with the same inputs produce the same tree.

        Args:
            branch_name: Branch to (re)create.
            files: Files to write, in order.
            message: Commit message.
            parent_branch: Branch to start from. Defaults to the base branch.

        Raises:
            RepositoryOperationError: If any step fails, including a commit
                with no changes relative to parent_branch.
        """
        engine = self.engine
        session = self.session
        parent = parent_branch or session.base_branch
        changes = list(files)
        with self._fatal(
            session.repository, RepositoryOperation.COMMIT_FILES, branch_name
        ):
            await engine.reset("hard")
            await engine.checkout(["-B", branch_name, f"{_REMOTE_PREFIX}{parent}"])
            for change in changes:
                await _write_file(session.local_path, change)
            await engine.add([change.name for change in changes])
            await engine.commit(message)
            await engine.push(REMOTE, branch_name, ["--force"])
        self._log.info(
            "Committed files to branch",
            branch=branch_name,
            parent_branch=parent,
            files=len(changes),
        )

    async def commit_files(self, descriptor: CommitDescriptor) -> None:
        """Apply a CommitDescriptor with commit_files_to_branch().

        Args:
            descriptor: Branch, message, files and parent branch.
        """
        await self.commit_files_to_branch(
            descriptor.branch_name,
            descriptor.files,
            descriptor.message,
            descriptor.parent_branch,
        )

    async def delete_branch(self, branch_name: str) -> None:
        """Delete a branch on the remote, then locally if present.

        Args:
            branch_name: Branch to delete.

        Raises:
            RepositoryOperationError: If the remote deletion fails.
        """
        engine = self.engine
        with self._fatal(
            self.session.repository, RepositoryOperation.DELETE_BRANCH, branch_name
        ):
            _ = await engine.raw(["push", "--delete", REMOTE, branch_name])
        try:
            _ = await engine.raw(["branch", "-D", branch_name])
        except VcsCommandError as e:
            # Local branch may not exist
            self._log.debug(
                "Local branch not deleted", branch=branch_name, error=str(e)
            )
        self._log.info("Deleted branch", branch=branch_name)

    async def merge_branch(self, branch_name: str) -> None:
        """Merge a branch into the base branch and push the result.

        Args:
            branch_name: Branch to merge.

        Raises:
            MergeError: If checkout, merge (including conflicts) or push
                fails. No conflict resolution is attempted.
        """
        engine = self.engine
        session = self.session
        base_branch = session.base_branch
        with self._fatal(
            session.repository,
            RepositoryOperation.MERGE_BRANCH,
            branch_name,
            error_type=MergeError,
        ):
            await engine.reset("hard")
            await engine.checkout(["-B", branch_name, f"{_REMOTE_PREFIX}{branch_name}"])
            await engine.checkout(["-B", base_branch, f"{_REMOTE_PREFIX}{base_branch}"])
            await engine.merge([branch_name])
            await engine.push(REMOTE, base_branch)
        self._log.info("Merged branch", branch=branch_name, base_branch=base_branch)

    # =========================================================================
    # History Queries
    # =========================================================================

    async def get_branch_commit(self, branch_name: str) -> str:
        """Get the commit SHA at the tip of ``origin/<branch_name>``.

        Raises:
            RepositoryOperationError: If the branch cannot be resolved.
        """
        with self._fatal(
            self.session.repository,
            RepositoryOperation.GET_BRANCH_COMMIT,
            branch_name,
        ):
            return await self.engine.revparse(remote_ref(branch_name))

    async def get_commit_messages(self) -> list[str]:
        """Get up to 10 recent commit subjects on the checked out ref.

        Returns:
            Subject lines, newest first.
        """
        self._log.debug("getCommitMessages")
        with self._fatal(
            self.session.repository, RepositoryOperation.GET_COMMIT_MESSAGES
        ):
            entries = await self.engine.log(COMMIT_MESSAGE_LIMIT)
        return [entry.subject for entry in entries]

    async def get_branch_last_commit_time(self, branch_name: str) -> datetime:
        """Get the author time of the tip of ``origin/<branch_name>``.

        This never fails: when the time cannot be determined the current
        time is returned. A missing branch is logged at debug level, any
        other failure at warning level.

        Args:
            branch_name: Branch name without the remote prefix.

        Returns:
            Timezone-aware author time, or now (UTC) as a fallback.
        """
        result = await self._lookup_commit_time(branch_name)
        if result.is_found and result.value is not None:
            return result.value
        if result.status is LookupStatus.NOT_FOUND:
            self._log.debug("Branch not found for commit time", branch=branch_name)
        else:
            self._log.warning(
                "Could not read branch commit time",
                branch=branch_name,
                error=str(result.error),
            )
        return datetime.now(UTC)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @contextmanager
    def _fatal(
        self,
        repository: str,
        operation: RepositoryOperation,
        branch: str | None = None,
        *,
        error_type: type[RepositoryOperationError] = RepositoryOperationError,
    ) -> Generator[None, None, None]:
        """Re-raise engine and filesystem failures with operation context."""
        try:
            yield
        except (VcsCommandError, OSError) as e:
            target = f" (branch {branch})" if branch else ""
            msg = f"{operation} failed for {repository}{target}: {e}"
            self._logger.error(  # noqa: TRY400
                "Repository operation failed",
                repository=repository,
                operation=str(operation),
                branch=branch,
                error=str(e),
            )
            raise error_type(
                msg, repository=repository, operation=operation, branch=branch
            ) from e


async def _write_file(root: Path, change: FileChange) -> None:
    target = anyio.Path(root / change.name)
    await target.parent.mkdir(parents=True, exist_ok=True)
    _ = await target.write_bytes(change.data)
