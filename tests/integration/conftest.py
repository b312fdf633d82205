import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import pytest

from repostate.config import GitAuthor, RepositoryConfig

INITIAL_PACKAGE_JSON: Final = b'{\n  "name": "demo",\n  "version": "1.0.0"\n}\n'
FEATURE_CONTENT: Final = b"feature work\n"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)
            if shutil.which("git") is None:
                item.add_marker(pytest.mark.skip(reason="git is not installed"))


def run_git(cwd: Path, *args: str) -> str:
    """Run git in cwd and return its standard output."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        check=True,
        text=True,
        env={
            "PATH": _path_env(),
            "HOME": str(cwd),
            "GIT_CONFIG_NOSYSTEM": "1",
            "LC_ALL": "C",
        },
    )
    return result.stdout


def _path_env() -> str:
    git = shutil.which("git")
    return str(Path(git).parent) if git else ""


@dataclass(frozen=True, slots=True)
class RemoteRepository:
    """A bare remote and a seed clone that can push to it."""

    bare: Path
    seed: Path
    initial_package_json: bytes = INITIAL_PACKAGE_JSON
    feature_content: bytes = FEATURE_CONTENT

    @property
    def url(self) -> str:
        return str(self.bare)

    def git(self, cwd: Path, *args: str) -> str:
        """Run git in cwd."""
        return run_git(cwd, *args)

    def push_file(self, branch: str, name: str, content: bytes, message: str) -> str:
        """Commit a file on branch from the seed clone and push it."""
        _ = run_git(self.seed, "fetch", "origin")
        _ = run_git(self.seed, "checkout", "-B", branch, f"origin/{branch}")
        target = self.seed / name
        target.parent.mkdir(parents=True, exist_ok=True)
        _ = target.write_bytes(content)
        _ = run_git(self.seed, "add", "--", name)
        _ = run_git(self.seed, "commit", "-m", message)
        _ = run_git(self.seed, "push", "origin", branch)
        return run_git(self.seed, "rev-parse", "HEAD").strip()


@pytest.fixture
def remote(tmp_path: Path) -> RemoteRepository:
    """Bare remote with main (package.json) and feature/x (one extra commit).

    Structure:
        tmp_path/
            remote.git/   # bare, HEAD -> main
            seed/         # clone used to push fixtures
    """
    bare = tmp_path / "remote.git"
    bare.mkdir()
    _ = run_git(bare, "init", "--bare")
    _ = run_git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = tmp_path / "seed"
    _ = run_git(tmp_path, "clone", str(bare), str(seed))
    _ = run_git(seed, "config", "user.name", "Seed")
    _ = run_git(seed, "config", "user.email", "seed@example.com")
    _ = run_git(seed, "config", "commit.gpgsign", "false")
    _ = run_git(seed, "symbolic-ref", "HEAD", "refs/heads/main")

    _ = (seed / "package.json").write_bytes(INITIAL_PACKAGE_JSON)
    _ = run_git(seed, "add", "package.json")
    _ = run_git(seed, "commit", "-m", "Initial commit")
    _ = run_git(seed, "push", "origin", "main")

    _ = run_git(seed, "checkout", "-b", "feature/x")
    _ = (seed / "feature.txt").write_bytes(FEATURE_CONTENT)
    _ = run_git(seed, "add", "feature.txt")
    _ = run_git(seed, "commit", "-m", "Add feature")
    _ = run_git(seed, "push", "origin", "feature/x")
    _ = run_git(seed, "checkout", "main")

    return RemoteRepository(bare=bare, seed=seed)


@pytest.fixture
def repo_config(remote: RemoteRepository) -> RepositoryConfig:
    return RepositoryConfig(
        remote_url=remote.url,
        repository="owner/demo",
        platform="local",
        git_author=GitAuthor(name="Update Bot", address="bot@example.com"),
    )
