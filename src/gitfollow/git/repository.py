"""
Read-only access to a git repository.

Repository is the handle the history walker is given. It offers the three
capabilities the walker needs from git:
- Ancestry traversal, either from a commit or restricted to a path
- Raw recursive tree diffs
- Rename/copy detection over a tree diff

Nothing here writes to the repository.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from gitfollow.git.commands import (
    Commit,
    DiffEntry,
    GitCommandError,
    run_git_command,
    get_commit,
    get_log,
    diff_trees,
)
from gitfollow.git.renames import RenameDetector

logger = logging.getLogger(__name__)


class Repository:
    """
    A read-only handle on a git repository.

    Commit arguments may be Commit objects or anything git accepts as a
    reference (hash, branch, tag, HEAD~2, ...).
    """

    def __init__(
        self,
        repo_path: Path,
        validate: bool = True,
        rename_detector: Optional[RenameDetector] = None,
    ):
        """
        Open a repository.

        Args:
            repo_path: Path to the git repository root (or any directory in it)
            validate: If True, verify repo_path is a valid git repository
            rename_detector: Policy used by detect_renames(); defaults to
                RenameDetector() with the package defaults

        Raises:
            ValueError: If repo_path doesn't exist or isn't a directory
            GitCommandError: If repo_path is not a git repository
        """
        repo_path = Path(repo_path)
        if not repo_path.exists():
            raise ValueError(f"Path does not exist: {repo_path}")
        if not repo_path.is_dir():
            raise ValueError(f"Path is not a directory: {repo_path}")

        if validate:
            # Verify it's a git repository
            try:
                run_git_command(['rev-parse', '--git-dir'], repo_path)
            except GitCommandError as e:
                raise GitCommandError(
                    f"Not a git repository: {repo_path}"
                ) from e

        self.repo_path = repo_path
        self.rename_detector = rename_detector if rename_detector is not None else RenameDetector()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.repo_path)!r})"

    def get_commit(self, ref: str) -> Commit:
        """
        Resolve a reference to a commit.

        Raises:
            GitCommandError: If the reference doesn't exist
            ValueError: If ref is invalid
        """
        return get_commit(self.repo_path, ref)

    def log(
        self,
        path: Optional[str] = None,
        start: Commit | str | None = None,
    ) -> list[Commit]:
        """
        Walk ancestry, most recent first.

        Args:
            path: Only commits that touched this path
            start: Commit to walk back from (default: HEAD)

        Returns:
            List of Commit objects. Empty if nothing matched or the
            repository has no commits yet.
        """
        commits = get_log(self.repo_path, start=_ref(start), path=path)
        logger.debug(
            "log path=%s start=%s: %d commits",
            path,
            _ref(start) or 'HEAD',
            len(commits),
        )
        return commits

    def diff_trees(self, old: Commit | str, new: Commit | str) -> list[DiffEntry]:
        """Raw recursive diff of two commits' trees, without rename detection."""
        return diff_trees(self.repo_path, _ref(old), _ref(new))

    def detect_renames(self, old: Commit | str, new: Commit | str) -> list[DiffEntry]:
        """Diff of two commits' trees with renames and copies detected."""
        return self.rename_detector.compute(self.repo_path, _ref(old), _ref(new))


def _ref(commit: Commit | str | None) -> Optional[str]:
    if isinstance(commit, Commit):
        return commit.hash
    return commit
