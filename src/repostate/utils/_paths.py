"""Working copy path resolution."""

import shutil
from pathlib import Path, PurePosixPath

from repostate.exceptions import ConfigValidationError


def compute_local_path(tmp_dir: Path, platform: str, repository: str) -> Path:
    """Get the working copy directory for a repository.

    The path is <tmp_dir>/<platform>/<repository>, so repeated runs for the
    same repository reuse the same directory.

    Args:
        tmp_dir: Root directory for working copies.
        platform: Platform identifier (e.g. "github").
        repository: Repository identifier (e.g. "owner/name").

    Returns:
        The working copy directory.

    Raises:
        ConfigValidationError: If an identifier would escape tmp_dir.
    """
    for key, value in (("platform", platform), ("repository", repository)):
        parts = PurePosixPath(value).parts
        if not parts or PurePosixPath(value).is_absolute() or ".." in parts:
            msg = f"Invalid {key} identifier for a working copy path: {value!r}"
            raise ConfigValidationError(
                msg, key=key, value=value, expected="relative identifier"
            )
    return tmp_dir.joinpath(platform, *PurePosixPath(repository).parts)


def empty_directory(path: Path) -> None:
    """Make path an empty directory.

    Creates the directory (and parents) if missing; otherwise removes
    everything inside it.

    Args:
        path: Directory to empty.
    """
    if not path.is_dir():
        path.mkdir(parents=True, exist_ok=True)
        return
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
