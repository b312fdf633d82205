"""repostate exceptions."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from repostate.enums import RepositoryOperation


class RepoStateError(Exception):
    """Base exception for repostate errors."""


# =============================================================================
# Version Control Engine Exceptions
# =============================================================================


class VcsCommandError(RepoStateError):
    """Raised when a version control command exits unsuccessfully.

    Attributes:
        argv: The command arguments (without the executable).
        returncode: Process exit code, or None if the process never ran.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.argv: tuple[str, ...] = tuple(argv)
        self.returncode: int | None = returncode
        self.stdout: str = stdout
        self.stderr: str = stderr


class RefNotFoundError(VcsCommandError):
    """Raised when a revision, ref or path does not exist."""


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryNotInitializedError(RepoStateError):
    """Raised when an operation runs before init_repo() has completed."""


class RepositoryOperationError(RepoStateError):
    """Raised when a fatal repository operation fails.

    The engine error that caused the failure is chained as ``__cause__``.

    Attributes:
        repository: Repository identifier (e.g. ``owner/name``).
        operation: The operation that failed.
        branch: Branch the operation targeted, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        repository: str,
        operation: RepositoryOperation,
        branch: str | None = None,
    ) -> None:
        """Initialize with error message and operation context."""
        super().__init__(message)
        self.repository: str = repository
        self.operation: RepositoryOperation = operation
        self.branch: str | None = branch


class CloneError(RepositoryOperationError):
    """Full clone of the remote failed."""


class MergeError(RepositoryOperationError):
    """Merging a branch into the base branch failed (including conflicts)."""


class BaseBranchUnresolvedError(RepositoryOperationError):
    """The remote's default branch could not be determined."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(RepoStateError):
    """Base exception for Settings and RepositoryConfig problems."""


class ConfigLoadError(ConfigError):
    """A configuration file could not be parsed.

    Attributes:
        path: The file that failed to parse.
        line: 1-based line of the parse error, if known.
        column: 1-based column of the parse error, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with the parse location."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """A configuration value is missing, malformed or out of range.

    Attributes:
        key: Dotted key of the offending value (e.g. ``logging.level``).
        value: The rejected value.
        expected: Short description of what was expected.
        source: Where the value came from (a file path or ``env``).
    """

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with the rejected key and value."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source
