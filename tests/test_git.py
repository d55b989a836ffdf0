"""Tests for git repository operations."""

from pathlib import Path

import pytest

from gut.branch import BranchDescriptor, decode
from gut.git import GitError, GitRepo


def test_open_outside_repository(tmp_path: Path) -> None:
    """Test that opening a plain directory fails with a git error."""
    with pytest.raises(GitError, match="Failed to open repository"):
        GitRepo(tmp_path)


def test_current_branch_name(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    assert repo.get_current_branch_name() == "master"
    assert decode(repo.get_current_branch_name()) == BranchDescriptor(version="master")


def test_current_branch_name_detached_head(test_env: tuple[Path, Path]) -> None:
    """Test that a detached HEAD has no branch name."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    repo.repo.git.checkout(repo.repo.head.commit.hexsha)
    assert repo.get_current_branch_name() == ""


def test_create_branch_stores_metadata(test_env: tuple[Path, Path]) -> None:
    """Test that a new branch is checked out with its descriptor attached."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    descriptor = BranchDescriptor(version="2.0.0", author="tester", base_branch="master")

    repo.create_branch("2.0.0", descriptor)

    assert repo.get_current_branch_name() == "2.0.0"
    assert repo.get_branch_metadata("2.0.0") == descriptor


def test_create_existing_branch(test_env: tuple[Path, Path]) -> None:
    """Test that git's refusal to overwrite a branch is surfaced."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    with pytest.raises(GitError, match="Failed to create branch 1.2.3"):
        repo.create_branch("1.2.3", BranchDescriptor(version="1.2.3"))
    assert repo.get_current_branch_name() == "master"


def test_branch_without_metadata(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    assert repo.get_branch_metadata("1.2.3") is None


def test_branch_with_foreign_description(test_env: tuple[Path, Path]) -> None:
    """Test that descriptions not written by gut are ignored."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    repo.repo.git.config("branch.1.2.3.description", "Release branch")
    assert repo.get_branch_metadata("1.2.3") is None


def test_search_local_branches(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    assert sorted(repo.search_local_branches("login")) == ["1.2.3_login", "1.2.3_login_42_fix-bug"]
    assert repo.search_local_branches("_42_") == ["1.2.3_login_42_fix-bug"]
    assert repo.search_local_branches("nothing") == []


def test_search_invalid_pattern(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    with pytest.raises(GitError, match="Invalid branch pattern"):
        repo.search_local_branches("[")


def test_checkout(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    repo.checkout("1.2.3_login")
    assert repo.get_current_branch_name() == "1.2.3_login"


def test_checkout_missing_branch(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    repo = GitRepo(local_path)
    with pytest.raises(GitError, match="Failed to check out"):
        repo.checkout("9.9.9")


def test_remotes(test_env: tuple[Path, Path]) -> None:
    """Test reading remotes and branch associations."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    assert repo.get_remotes() == ["origin"]
    assert repo.get_branch_remote() == "origin"
    assert repo.get_branch_remote("master") == "origin"
    assert repo.get_branch_remote("1.2.3") is None


def test_working_tree_state(test_env: tuple[Path, Path]) -> None:
    """Test detecting unstaged, staged and untracked changes."""
    local_path, _ = test_env
    repo = GitRepo(local_path)
    assert not repo.is_dirty()
    assert not repo.has_staged_changes()
    assert not repo.has_untracked_files()

    (local_path / "new.txt").write_text("new")
    assert repo.has_untracked_files()

    (local_path / "README.md").write_text("changed")
    assert repo.is_dirty()

    repo.repo.index.add(["README.md"])
    assert repo.has_staged_changes()


def test_user_name(test_env: tuple[Path, Path]) -> None:
    local_path, _ = test_env
    assert GitRepo(local_path).get_user_name() == "Test User"
