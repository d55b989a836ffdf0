"""Test configuration and fixtures."""

import json
from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo
from typer.testing import CliRunner


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a local repository following the branching model, with a remote.

    Branches: master, 1.2.3 (version), 1.2.3_login (feature) and
    1.2.3_login_42_fix-bug (dev). master is checked out.

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)

    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    readme = local_path / "README.md"
    readme.write_text("# Test Repository")
    local_repo.index.add(["README.md"])
    local_repo.index.commit("Initial commit", author=author)

    # The default branch name depends on the git version and its config
    if local_repo.active_branch.name != "master":
        local_repo.git.branch("-M", "master")

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("master")
    local_repo.heads.master.set_tracking_branch(origin.refs.master)

    for name in ["1.2.3", "1.2.3_login", "1.2.3_login_42_fix-bug"]:
        local_repo.create_head(name)

    yield local_path, remote_path


@pytest.fixture
def options_path(tmp_path: Path) -> Path:
    """Write global options for the tests and return their path."""
    path = tmp_path / "config" / "gut-config.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"username": "tester"}))
    return path


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()
