"""
Follow a single file's history across renames and copies.

The walk alternates two steps until neither finds anything new:
- Collect every commit that touched the current path
- From the oldest newly collected commit, search its ancestry for the
  rename or copy that created the current path, and continue with the
  old path
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from gitfollow.git.commands import ChangeType, Commit, DiffEntry
from gitfollow.git.renames import RENAME_CHANGE_TYPES
from gitfollow.git.repository import Repository

logger = logging.getLogger(__name__)


class PathMatch(Enum):
    """How a rename's new path is compared to the tracked path."""
    EXACT = "exact"
    CONTAINS = "contains"  # tracked path is a substring of the new path


class FollowError(Exception):
    """Base class for errors raised while following a file."""


class WalkCancelled(FollowError):
    """
    Raised when a walk is stopped by its timeout or cancellation hook.

    The commits collected before the walk stopped are kept on the exception.
    """

    def __init__(self, message: str, commits: Optional[list[Commit]] = None):
        super().__init__(message)
        self.commits = list(commits or [])


@dataclass(frozen=True)
class RenameEvent:
    """
    A rename or copy found while following a file.

    commit is the anchor commit where the new path's history ran out,
    source the ancestor whose tree held the old path.
    """
    commit: Commit
    source: Commit
    old_path: str
    new_path: str
    change_type: ChangeType
    score: Optional[int] = None


@dataclass
class FileHistory:
    """The complete result of following one path."""
    path: str
    commits: list[Commit] = field(default_factory=list)
    renames: list[RenameEvent] = field(default_factory=list)
    paths: list[str] = field(default_factory=list)  # one per collection round

    @property
    def rounds(self) -> int:
        return len(self.paths)

    def __len__(self) -> int:
        return len(self.commits)


def normalize_path(path: str) -> str:
    """
    Normalize a repository-relative path to git's form.

    Converts OS separators to '/', strips leading './' and trailing '/'.

    Raises:
        ValueError: If the path is empty or absolute
    """
    if not path or not isinstance(path, str):
        raise ValueError(f"Path must be a non-empty string: {path!r}")

    normalized = path.replace(os.sep, '/')
    if normalized.startswith('/') or os.path.isabs(path):
        raise ValueError(f"Path must be relative to the repository root: {path!r}")

    while normalized.startswith('./'):
        normalized = normalized[2:]
    normalized = normalized.rstrip('/')

    if not normalized or normalized == '.':
        raise ValueError(f"Path must name a file: {path!r}")
    return normalized


class FollowLog:
    """
    Log of one file's commits, following renames and copies.

    Equivalent to `git log --follow -- <path>`. The walker only reads from
    the repository. Resolving a rename re-diffs whole trees for every
    ancestor of the anchor commit, so a walk over a long history can take
    many seconds; `timeout` and `should_cancel` bound it.

    Example:
        repo = Repository(Path('.'))
        for commit in FollowLog(repo).collect('src/app.py'):
            print(commit.short_hash, commit.message)
    """

    def __init__(
        self,
        repository: Repository,
        start: Commit | str | None = None,
        match: PathMatch = PathMatch.EXACT,
        timeout: Optional[float] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            repository: Read-only repository handle
            start: Commit to walk back from (default: HEAD)
            match: How rename targets are compared to the tracked path
            timeout: Seconds a single collect() call may run, None for no limit
            should_cancel: Called before each round and each rename candidate;
                returning True stops the walk

        Raises:
            ValueError: If timeout is not positive
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"Timeout must be positive: {timeout}")

        self.repository = repository
        self.start = start
        self.match = PathMatch(match)
        self.timeout = timeout
        self.should_cancel = should_cancel

    def collect(self, path: str) -> list[Commit]:
        """
        Commits that touched `path` or any path it was renamed or copied from.

        Returns:
            Commits newest first, each at most once. Empty if the path
            never appears in the history.

        Raises:
            GitCommandError: If git fails; the walk is abandoned
            WalkCancelled: If the timeout or cancellation hook fired
        """
        return self.collect_history(path).commits

    def collect_history(self, path: str) -> FileHistory:
        """Like collect(), also reporting the renames and paths followed."""
        current = normalize_path(path)
        history = FileHistory(path=current)
        seen: dict[str, Commit] = {}
        deadline = self._deadline()

        while True:
            self._check_cancelled(deadline, seen)
            history.paths.append(current)

            last_new = None
            for commit in self.repository.log(path=current, start=self.start):
                if commit.hash in seen:
                    continue
                seen[commit.hash] = commit
                last_new = commit

            logger.debug(
                "Round %d: %s, %d commits so far",
                history.rounds,
                current,
                len(seen),
            )
            if last_new is None:
                break

            rename = self._find_rename(last_new, current, deadline, seen)
            if rename is None:
                break

            history.renames.append(rename)
            current = rename.old_path

        history.commits = list(seen.values())
        return history

    def resolve_rename(self, anchor: Commit | str, path: str) -> Optional[str]:
        """
        Find the path that `path` was renamed or copied from.

        Args:
            anchor: Earliest known commit touching `path`
            path: The path being tracked

        Returns:
            The old path, or None when no rename or copy produced `path`.
        """
        if not isinstance(anchor, Commit):
            anchor = self.repository.get_commit(anchor)

        rename = self._find_rename(anchor, normalize_path(path), self._deadline(), {})
        return rename.old_path if rename is not None else None

    def _find_rename(
        self,
        anchor: Commit,
        path: str,
        deadline: Optional[float],
        seen: dict[str, Commit],
    ) -> Optional[RenameEvent]:
        for candidate in self.repository.log(start=anchor):
            self._check_cancelled(deadline, seen)

            if candidate == anchor:
                continue

            # Renames and copies show up as additions in a plain diff;
            # skip the expensive detection when the path wasn't added.
            raw = self.repository.diff_trees(candidate, anchor)
            if not any(e.change_type == ChangeType.ADD and self._matches(e.new_path, path) for e in raw):
                continue

            for entry in self.repository.detect_renames(candidate, anchor):
                if self._is_origin(entry, path):
                    logger.info(
                        "Found %s %s -> %s between %s and %s",
                        entry.change_type.value,
                        entry.old_path,
                        entry.new_path,
                        candidate.short_hash,
                        anchor.short_hash,
                    )
                    return RenameEvent(
                        commit=anchor,
                        source=candidate,
                        old_path=entry.old_path,
                        new_path=entry.new_path,
                        change_type=entry.change_type,
                        score=entry.score,
                    )

        logger.debug("No rename found for %s before %s", path, anchor.short_hash)
        return None

    def _is_origin(self, entry: DiffEntry, path: str) -> bool:
        return (
            entry.change_type in RENAME_CHANGE_TYPES
            and self._matches(entry.new_path, path)
            # Following a path back to itself would never terminate
            and entry.old_path != path
        )

    def _matches(self, new_path: Optional[str], path: str) -> bool:
        if new_path is None:
            return False
        if self.match == PathMatch.CONTAINS:
            return path in new_path
        return new_path == path

    def _deadline(self) -> Optional[float]:
        if self.timeout is None:
            return None
        return time.monotonic() + self.timeout

    def _check_cancelled(self, deadline: Optional[float], seen: dict[str, Commit]) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise WalkCancelled(
                f"Walk timed out after {self.timeout}s",
                commits=list(seen.values()),
            )
        if self.should_cancel is not None and self.should_cancel():
            raise WalkCancelled("Walk cancelled", commits=list(seen.values()))


def follow_log(
    repository: Repository,
    path: str,
    start: Commit | str | None = None,
    **kwargs,
) -> list[Commit]:
    """Shorthand for FollowLog(repository, start, **kwargs).collect(path)."""
    return FollowLog(repository, start=start, **kwargs).collect(path)
