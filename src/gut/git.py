"""Git repository operations."""

import re
from pathlib import Path
from typing import Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from gut.branch import BranchDescriptor
from gut.exceptions import GutError, InvalidFormat
from gut.logging_config import get_logger

logger = get_logger(__name__)


class GitError(GutError):
    """Git operation error."""


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err

    def get_current_branch_name(self) -> str:
        """Get current branch name."""
        try:
            try:
                return self.repo.active_branch.name
            except TypeError:
                # Detached HEAD
                return ""
        except (GitCommandError, ValueError) as err:
            raise GitError(f"Failed to get current branch: {err}") from err

    def get_local_branches(self) -> list[str]:
        """Get the names of all local branches."""
        try:
            return [branch for branch in self.repo.git.branch("--format=%(refname:short)").splitlines() if branch]
        except GitCommandError as err:
            raise GitError(f"Failed to list branches: {err}") from err

    def search_local_branches(self, pattern: str) -> list[str]:
        """Get the local branches matching a regular expression."""
        try:
            regex = re.compile(pattern)
        except re.error as err:
            raise GitError(f"Invalid branch pattern '{pattern}': {err}") from err
        return [branch for branch in self.get_local_branches() if regex.search(branch)]

    def create_branch(self, name: str, descriptor: BranchDescriptor) -> None:
        """Create and check out a branch, storing its descriptor as the branch description.

        Raises:
            GitError: If git refuses, e.g. because the branch already exists
        """
        try:
            logger.info(f"git checkout -b {name}")
            self.repo.git.checkout("-b", name)
            logger.info(f"git config branch.{name}.description")
            self.repo.git.config(f"branch.{name}.description", descriptor.to_metadata())
        except GitCommandError as err:
            raise GitError(f"Failed to create branch {name}: {err}") from err

    def get_branch_metadata(self, name: str) -> Optional[BranchDescriptor]:
        """Get the descriptor stored with a branch, if any."""
        try:
            metadata = self.repo.git.config("--get", f"branch.{name}.description")
        except GitCommandError:
            # Key not set
            return None
        try:
            return BranchDescriptor.from_metadata(metadata)
        except InvalidFormat:
            logger.warning(f"Ignoring description of {name}, it was not written by gut")
            return None

    def checkout(self, name: str) -> None:
        """Check out an existing branch."""
        try:
            logger.info(f"git checkout {name}")
            self.repo.git.checkout(name)
        except GitCommandError as err:
            raise GitError(f"Failed to check out {name}: {err}") from err

    def get_remotes(self) -> list[str]:
        """Get the names of the configured remotes."""
        return [remote.name for remote in self.repo.remotes]

    def get_branch_remote(self, name: Optional[str] = None) -> Optional[str]:
        """Get the remote a branch tracks, defaulting to the current branch."""
        branch = name or self.get_current_branch_name()
        try:
            return self.repo.git.config("--get", f"branch.{branch}.remote").strip() or None
        except GitCommandError:
            return None

    def is_dirty(self) -> bool:
        """Check for unstaged changes to tracked files."""
        try:
            return bool(self.repo.index.diff(None))
        except GitCommandError:
            return True

    def has_staged_changes(self) -> bool:
        """Check for changes staged for commit."""
        if not self.repo.head.is_valid():
            # No commits yet, everything in the index is staged
            return bool(self.repo.index.entries)
        try:
            return bool(self.repo.index.diff("HEAD"))
        except GitCommandError:
            return True

    def has_untracked_files(self) -> bool:
        """Check for untracked files that are not ignored."""
        return bool(self.repo.untracked_files)

    def get_user_name(self) -> str:
        """Get git's configured user name, or an empty string."""
        try:
            return self.repo.git.config("--get", "user.name").strip()
        except GitCommandError:
            return ""
