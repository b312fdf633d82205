"""End-to-end tests for RepositoryManager against a local bare remote."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from dulwich.repo import Repo

from repostate.config import RepositoryConfig, Settings
from repostate.enums import RefreshStrategy
from repostate.exceptions import (
    CloneError,
    MergeError,
    RepositoryOperationError,
)
from repostate.repository import FileChange, RepositoryManager
from repostate.utils._paths import compute_local_path

pytestmark = pytest.mark.anyio


@pytest.fixture
def manager(settings: Settings, captured_logs) -> RepositoryManager:
    return RepositoryManager(settings, logger=captured_logs.logger)


@pytest.fixture
async def ready(
    manager: RepositoryManager, repo_config: RepositoryConfig
) -> RepositoryManager:
    _ = await manager.init_repo(repo_config)
    return manager


class TestInitRepo:
    async def test_clone_resolves_default_branch(
        self, manager: RepositoryManager, repo_config: RepositoryConfig
    ) -> None:
        session = await manager.init_repo(repo_config)

        assert session.base_branch == "main"
        assert session.strategy is RefreshStrategy.CLONE
        assert (session.local_path / ".git").is_dir()

    async def test_git_author_is_written(
        self, manager: RepositoryManager, repo_config: RepositoryConfig, remote
    ) -> None:
        session = await manager.init_repo(repo_config)

        config = remote.git(session.local_path, "config", "--local", "--list")
        assert "user.name=Update Bot" in config
        assert "user.email=bot@example.com" in config
        assert "commit.gpgsign=false" in config

    async def test_second_init_fetches_new_branches(
        self,
        work_dir: Path,
        captured_logs,
        remote,
        repo_config: RepositoryConfig,
    ) -> None:
        settings = Settings.from_dict({"storage": {"tmp_dir": str(work_dir)}})
        first = RepositoryManager(settings, logger=captured_logs.logger)
        assert (await first.init_repo(repo_config)).strategy is RefreshStrategy.CLONE

        _ = remote.git(remote.seed, "checkout", "-b", "renovate/new", "origin/main")
        _ = remote.git(remote.seed, "push", "origin", "renovate/new")
        second = RepositoryManager(settings, logger=captured_logs.logger)
        session = await second.init_repo(repo_config)

        assert session.strategy is RefreshStrategy.INCREMENTAL_FETCH
        assert await second.get_all_branches("renovate/") == ["renovate/new"]

    async def test_refresh_prunes_deleted_branches(
        self,
        work_dir: Path,
        captured_logs,
        remote,
        repo_config: RepositoryConfig,
    ) -> None:
        settings = Settings.from_dict({"storage": {"tmp_dir": str(work_dir)}})
        manager = RepositoryManager(settings, logger=captured_logs.logger)
        _ = await manager.init_repo(repo_config)

        _ = remote.git(remote.seed, "push", "origin", "--delete", "feature/x")
        _ = await manager.init_repo(repo_config)

        assert not await manager.branch_exists("feature/x")

    async def test_broken_working_copy_falls_back_to_clone(
        self,
        work_dir: Path,
        captured_logs,
        repo_config: RepositoryConfig,
    ) -> None:
        local_path = compute_local_path(work_dir, "local", "owner/demo")
        local_path.mkdir(parents=True)
        # A repository without an origin remote cannot be fetched
        Repo.init(str(local_path)).close()
        settings = Settings.from_dict({"storage": {"tmp_dir": str(work_dir)}})
        manager = RepositoryManager(settings, logger=captured_logs.logger)

        session = await manager.init_repo(repo_config)

        assert session.strategy is RefreshStrategy.CLONE
        assert "git fetch error" in captured_logs.events("error")
        assert await manager.branch_exists("feature/x")

    async def test_unreachable_remote_raises_clone_error(
        self, manager: RepositoryManager, tmp_path: Path
    ) -> None:
        config = RepositoryConfig(
            remote_url=str(tmp_path / "does-not-exist.git"), repository="o/missing"
        )

        with pytest.raises(CloneError):
            _ = await manager.init_repo(config)


class TestQueries:
    async def test_get_all_branches(self, ready: RepositoryManager) -> None:
        assert await ready.get_all_branches("feature/") == ["feature/x"]
        assert sorted(await ready.get_all_branches()) == ["feature/x", "main"]

    async def test_branch_exists(self, ready: RepositoryManager) -> None:
        assert await ready.branch_exists("main")
        assert await ready.branch_exists("feature/x")
        assert not await ready.branch_exists("nonexistent")

    async def test_get_file_exact_bytes(self, ready: RepositoryManager, remote) -> None:
        main_content = await ready.get_file("package.json", "main")
        feature_content = await ready.get_file("feature.txt", "feature/x")

        assert main_content == remote.initial_package_json
        assert feature_content == remote.feature_content

    async def test_get_file_absent(self, ready: RepositoryManager) -> None:
        assert await ready.get_file("package.json", "nonexistent") is None
        assert await ready.get_file("missing.txt") is None
        assert await ready.get_file("feature.txt", "main") is None

    async def test_get_file_list(self, ready: RepositoryManager) -> None:
        assert await ready.get_file_list() == ["package.json"]
        assert sorted(await ready.get_file_list("feature/x")) == [
            "feature.txt",
            "package.json",
        ]
        assert await ready.get_file_list("nonexistent") == []

    async def test_get_commit_messages(self, ready: RepositoryManager) -> None:
        assert await ready.get_commit_messages() == ["Initial commit"]

    async def test_get_branch_last_commit_time(self, ready: RepositoryManager) -> None:
        result = await ready.get_branch_last_commit_time("feature/x")

        assert result.tzinfo is not None
        assert datetime.now(UTC) - result < timedelta(minutes=10)

    async def test_last_commit_time_for_missing_branch_is_now(
        self, ready: RepositoryManager
    ) -> None:
        before = datetime.now(UTC)

        result = await ready.get_branch_last_commit_time("nonexistent")

        assert result >= before


class TestBranchLifecycle:
    async def test_create_branch_points_at_sha(self, ready: RepositoryManager) -> None:
        sha = await ready.get_branch_commit("main")

        await ready.create_branch("renovate/pinned", sha)

        assert await ready.get_branch_commit("renovate/pinned") == sha
        assert await ready.branch_exists("renovate/pinned")

    async def test_get_branch_commit_missing_raises(
        self, ready: RepositoryManager
    ) -> None:
        with pytest.raises(RepositoryOperationError):
            _ = await ready.get_branch_commit("nonexistent")

    async def test_staleness(
        self,
        ready: RepositoryManager,
        remote,
        repo_config: RepositoryConfig,
    ) -> None:
        await ready.create_branch("fresh", await ready.get_branch_commit("main"))
        assert not await ready.is_branch_stale("fresh")
        assert not await ready.is_branch_stale("feature/x")

        _ = remote.push_file("main", "CHANGELOG.md", b"1.0.1\n", "Advance main")
        _ = await ready.init_repo(repo_config)

        assert await ready.is_branch_stale("fresh")
        assert await ready.is_branch_stale("feature/x")

    async def test_arrow_in_commit_subject(
        self,
        ready: RepositoryManager,
        remote,
        repo_config: RepositoryConfig,
    ) -> None:
        _ = remote.push_file("main", "bar.txt", b"2\n", "Bump bar 1 -> 2")
        _ = await ready.init_repo(repo_config)
        await ready.commit_files_to_branch(
            "renovate/foo", [FileChange("foo.txt", "2.0\n")], "Bump foo 1.0 -> 2.0"
        )

        assert sorted(await ready.get_all_branches()) == [
            "feature/x",
            "main",
            "renovate/foo",
        ]
        assert await ready.get_all_branches("renovate/") == ["renovate/foo"]
        assert not await ready.is_branch_stale("renovate/foo")
        assert await ready.is_branch_stale("feature/x")

    async def test_line_separator_in_commit_subject(
        self, ready: RepositoryManager
    ) -> None:
        await ready.commit_files_to_branch(
            "renovate/docs", [FileChange("docs.txt", "x\n")], "Fix\u2028docs"
        )

        assert (await ready.get_commit_messages())[0] == "Fix\u2028docs"
        assert await ready.get_all_branches("renovate/") == ["renovate/docs"]

    async def test_non_ascii_paths_round_trip(self, ready: RepositoryManager) -> None:
        await ready.commit_files_to_branch(
            "renovate/i18n", [FileChange("docs/été.txt", "é\n")], "Add docs"
        )

        names = await ready.get_file_list("renovate/i18n")

        assert "docs/été.txt" in names
        assert await ready.get_file("docs/été.txt", "renovate/i18n") == (
            "é\n".encode()
        )

    async def test_commit_files_to_branch(self, ready: RepositoryManager) -> None:
        files = [
            FileChange("package.json", b'{"version": "2.0.0"}\n'),
            FileChange("nested/dir/new.txt", "created\n"),
        ]

        await ready.commit_files_to_branch("renovate/foo", files, "Update foo to v2")

        assert await ready.branch_exists("renovate/foo")
        assert (
            await ready.get_file("package.json", "renovate/foo")
            == b'{"version": "2.0.0"}\n'
        )
        assert await ready.get_file("nested/dir/new.txt", "renovate/foo") == b"created\n"
        assert (await ready.get_commit_messages())[0] == "Update foo to v2"
        assert not await ready.is_branch_stale("renovate/foo")

    async def test_commit_files_is_idempotent(self, ready: RepositoryManager) -> None:
        files = [FileChange("package.json", b'{"version": "2.0.0"}\n')]

        await ready.commit_files_to_branch("renovate/foo", files, "Update foo")
        first_tree = await ready.engine.raw(
            ["rev-parse", "refs/remotes/origin/renovate/foo^{tree}"]
        )
        await ready.commit_files_to_branch("renovate/foo", files, "Update foo")
        second_tree = await ready.engine.raw(
            ["rev-parse", "refs/remotes/origin/renovate/foo^{tree}"]
        )

        assert first_tree == second_tree
        assert await ready.get_file_list("renovate/foo") == ["package.json"]

    async def test_commit_files_with_parent_branch(
        self, ready: RepositoryManager
    ) -> None:
        await ready.commit_files_to_branch(
            "renovate/on-feature",
            [FileChange("extra.txt", "x")],
            "Add extra",
            parent_branch="feature/x",
        )

        assert sorted(await ready.get_file_list("renovate/on-feature")) == [
            "extra.txt",
            "feature.txt",
            "package.json",
        ]

    async def test_commit_without_changes_raises(
        self, ready: RepositoryManager, remote
    ) -> None:
        with pytest.raises(RepositoryOperationError):
            await ready.commit_files_to_branch(
                "renovate/noop",
                [FileChange("package.json", remote.initial_package_json)],
                "No-op",
            )

    async def test_delete_branch(self, ready: RepositoryManager) -> None:
        await ready.delete_branch("feature/x")

        assert not await ready.branch_exists("feature/x")
        assert await ready.get_all_branches("feature/") == []

    async def test_delete_branch_with_local_copy(
        self, ready: RepositoryManager
    ) -> None:
        await ready.commit_files_to_branch(
            "renovate/gone", [FileChange("a.txt", "a")], "Add a"
        )
        await ready.create_branch("other", await ready.get_branch_commit("main"))

        await ready.delete_branch("renovate/gone")

        assert not await ready.branch_exists("renovate/gone")


class TestMergeBranch:
    async def test_fast_forward_merge(self, ready: RepositoryManager, remote) -> None:
        feature_sha = await ready.get_branch_commit("feature/x")

        await ready.merge_branch("feature/x")

        assert await ready.get_branch_commit("main") == feature_sha
        assert await ready.get_file("feature.txt", "main") == remote.feature_content

    async def test_merge_after_base_advanced(
        self, ready: RepositoryManager, remote
    ) -> None:
        await ready.commit_files_to_branch(
            "main", [FileChange("other.txt", "other\n")], "Advance main"
        )

        await ready.merge_branch("feature/x")

        assert await ready.get_file("feature.txt", "main") == remote.feature_content
        assert await ready.get_file("other.txt", "main") == b"other\n"

    async def test_conflict_raises_merge_error(self, ready: RepositoryManager) -> None:
        await ready.commit_files_to_branch(
            "conflict/a", [FileChange("package.json", "A\n")], "Set A"
        )
        await ready.commit_files_to_branch(
            "conflict/b", [FileChange("package.json", "B\n")], "Set B"
        )
        await ready.merge_branch("conflict/a")
        main_sha = await ready.get_branch_commit("main")

        with pytest.raises(MergeError):
            await ready.merge_branch("conflict/b")

        assert await ready.get_branch_commit("main") == main_sha
