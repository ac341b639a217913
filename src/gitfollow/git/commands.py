"""Low-level Git command execution and parsing."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from gitfollow.constants import (
    GIT_COMMAND_TIMEOUT,
    GIT_REF_CHARACTERS,
    GIT_REF_MAX_LENGTH,
)

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """Raised when a git command fails."""
    pass


class GitParseError(Exception):
    """Raised when git output cannot be parsed."""
    pass


@dataclass(frozen=True)
class Commit:
    """
    Represents a git commit.

    Identity is the commit hash alone: two Commit objects produced by
    independent git invocations compare (and hash) equal when they name
    the same commit.
    """
    hash: str
    parents: tuple[str, ...] = field(default=(), compare=False)
    author: str = field(default='', compare=False)
    date: str = field(default='', compare=False)
    message: str = field(default='', compare=False)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class ChangeType(Enum):
    """Kinds of per-file change reported by a tree diff."""
    ADD = "add"
    DELETE = "delete"
    MODIFY = "modify"
    RENAME = "rename"
    COPY = "copy"
    TYPE_CHANGE = "type_change"


@dataclass(frozen=True)
class DiffEntry:
    """
    One file's change between two trees.

    old_path is None for additions and new_path is None for deletions.
    score is the similarity percentage git reports for renames and copies.
    """
    change_type: ChangeType
    old_path: Optional[str]
    new_path: Optional[str]
    old_id: Optional[str] = None
    new_id: Optional[str] = None
    score: Optional[int] = None

    @property
    def path(self) -> str:
        """The path this entry is about: the new path unless deleted."""
        return self.new_path if self.new_path is not None else self.old_path


# Module-level constants
_STATUS_MAP: dict[str, ChangeType] = {
    'A': ChangeType.ADD,
    'D': ChangeType.DELETE,
    'M': ChangeType.MODIFY,
    'R': ChangeType.RENAME,
    'C': ChangeType.COPY,
    'T': ChangeType.TYPE_CHANGE,
}

# Null byte delimiter - cannot appear in git metadata
# Use %x00 in git format strings, actual \x00 for parsing output
_NULL_FORMAT = '%x00'  # For git --format strings
_NULL = '\x00'         # For parsing output

# Record separator between commits. The parent list of a root commit is
# empty, so fields can't be grouped by counting non-empty entries.
_RECORD_FORMAT = '%x1e'
_RECORD = '\x1e'

_LOG_FORMAT = (
    f'%H{_NULL_FORMAT}%P{_NULL_FORMAT}%an{_NULL_FORMAT}'
    f'%aI{_NULL_FORMAT}%s{_RECORD_FORMAT}'
)
_LOG_FIELDS = 5

# Paths are file names, never globs or ':(magic)' pathspecs
_LOG_CONFIG_OVERRIDES = [
    '--literal-pathspecs',
    '-c', 'log.follow=false',
    '-c', 'log.showSignature=false',
]

_EMPTY_REPO_MESSAGE = 'does not have any commits'


def run_git_command(args: list[str], cwd: Path, timeout: int = GIT_COMMAND_TIMEOUT) -> str:
    """
    Run a git command and return output.

    Args:
        args: Command arguments, e.g., ['log', '--oneline', '-n', '10']
        cwd: Directory to run command in
        timeout: Maximum seconds to wait

    Returns:
        Command stdout

    Raises:
        GitCommandError: If command fails
    """
    logger.debug("git %s (in %s)", ' '.join(args), cwd)
    try:
        # Tree paths are raw bytes; undecodable names survive as surrogates
        # and encode back to the same bytes when passed to git again.
        result = subprocess.run(
            ['git'] + args,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='surrogateescape',
            timeout=timeout
        )

        if result.returncode != 0:
            raise GitCommandError(f"Git command failed: {result.stderr.strip()}")

        return result.stdout

    except subprocess.TimeoutExpired:
        raise GitCommandError(f"Git command timed out after {timeout}s")
    except FileNotFoundError:
        raise GitCommandError("Git is not installed or not in PATH")


def _is_valid_commit_hash(commit_hash: str) -> bool:
    """Check if a string looks like a valid git commit reference."""
    if not commit_hash or not isinstance(commit_hash, str):
        return False

    if len(commit_hash) > GIT_REF_MAX_LENGTH:
        return False

    # A leading dash would be read as an option
    if commit_hash.startswith('-'):
        return False

    return all(c in GIT_REF_CHARACTERS for c in commit_hash)


def _check_ref(ref: str) -> None:
    if not _is_valid_commit_hash(ref):
        raise ValueError(f"Invalid commit hash: {ref!r}")


def _parse_log_output(output: str) -> list[Commit]:
    """
    Parse `git log --format=_LOG_FORMAT` output into commits.

    Records are separated by \\x1e, fields within a record by \\x00.
    """
    commits = []

    for record in output.split(_RECORD):
        record = record.strip('\n')
        if not record:
            continue

        fields = record.split(_NULL)
        if len(fields) != _LOG_FIELDS:
            raise GitParseError(f"Unexpected git log record: {record!r}")

        commit_hash, parents, author, date, message = fields
        commits.append(Commit(
            hash=commit_hash,
            parents=tuple(parents.split()),
            author=author,
            date=date,
            message=message,
        ))

    return commits


def _blob_id(object_id: str) -> Optional[str]:
    """Git reports a missing side of a diff as an all-zero object id."""
    return None if set(object_id) == {'0'} else object_id


def _parse_raw_diff_output(output: str) -> list[DiffEntry]:
    """
    Parse `git diff-tree -r -z` raw output.

    Handles:
        - Normal: ":100644 100644 <old> <new> M\\0path\\0"
        - Rename/Copy: ":100644 100644 <old> <new> R087\\0old\\0new\\0"
    """
    entries = []
    tokens = output.split(_NULL)
    i = 0

    while i < len(tokens):
        header = tokens[i].strip('\n')
        if not header:
            i += 1
            continue

        if not header.startswith(':'):
            raise GitParseError(f"Unexpected diff-tree header: {header!r}")

        fields = header[1:].split()
        if len(fields) != 5:
            raise GitParseError(f"Unexpected diff-tree header: {header!r}")

        _, _, old_id, new_id, status = fields
        status_code = status[0]  # First char (R087 -> R)
        change_type = _STATUS_MAP.get(status_code)
        if change_type is None:
            raise GitParseError(f"Unsupported diff status {status!r}")

        score = int(status[1:]) if status[1:] else None
        path_count = 2 if change_type in (ChangeType.RENAME, ChangeType.COPY) else 1
        paths = tokens[i + 1:i + 1 + path_count]
        if len(paths) != path_count or not all(paths):
            raise GitParseError(f"Missing path after diff-tree header: {header!r}")
        i += 1 + path_count

        if path_count == 2:
            old_path, new_path = paths
        elif change_type == ChangeType.ADD:
            old_path, new_path = None, paths[0]
        elif change_type == ChangeType.DELETE:
            old_path, new_path = paths[0], None
        else:
            old_path = new_path = paths[0]

        entries.append(DiffEntry(
            change_type=change_type,
            old_path=old_path,
            new_path=new_path,
            old_id=_blob_id(old_id),
            new_id=_blob_id(new_id),
            score=score,
        ))

    return entries


def get_commit(repo_path: Path, commit_hash: str) -> Commit:
    """
    Get a single commit by its hash or reference.

    Args:
        repo_path: Path to the git repository
        commit_hash: The commit hash or reference (HEAD, branch, tag, etc.)

    Returns:
        Commit object with metadata

    Raises:
        GitCommandError: If the commit doesn't exist
        ValueError: If commit_hash is invalid
    """
    _check_ref(commit_hash)

    output = run_git_command(
        _LOG_CONFIG_OVERRIDES + ['log', '-1', '--no-color', f'--format={_LOG_FORMAT}', commit_hash, '--'],
        repo_path
    )

    commits = _parse_log_output(output)
    if len(commits) != 1:
        raise GitCommandError(f"Unexpected git output for commit {commit_hash}")

    return commits[0]


def get_log(
    repo_path: Path,
    start: Optional[str] = None,
    path: Optional[str] = None,
) -> list[Commit]:
    """
    List commits in reverse-chronological (child before parent) order.

    Args:
        repo_path: Path to the git repository
        start: Commit to walk back from (default: HEAD)
        path: If given, only commits that touched this path

    Returns:
        List of Commit objects, most recent first.
        Empty list if the repository has no commits.

    Raises:
        GitCommandError: If start doesn't exist or git fails
        ValueError: If start is invalid
    """
    # User config must not change what a path-limited log returns
    args = _LOG_CONFIG_OVERRIDES + ['log', '--no-color', f'--format={_LOG_FORMAT}']
    if start is not None:
        _check_ref(start)
        args.append(start)
    args.append('--')
    if path is not None:
        args.append(path)

    try:
        output = run_git_command(args, repo_path)
    except GitCommandError as e:
        # Empty repository has no commits
        if _EMPTY_REPO_MESSAGE in str(e):
            return []
        raise

    return _parse_log_output(output)


def diff_trees(repo_path: Path, old: str, new: str, extra_args: Optional[list[str]] = None) -> list[DiffEntry]:
    """
    Compare the trees of two commits, recursing into subtrees.

    Without extra_args only additions, deletions, modifications and type
    changes are reported; rename detection is turned off.

    Args:
        repo_path: Path to the git repository
        old: Commit (or tree) on the old side
        new: Commit (or tree) on the new side
        extra_args: Diff options replacing --no-renames, e.g. ['-M60%']

    Returns:
        List of DiffEntry objects in git's path order

    Raises:
        GitCommandError: If either side doesn't exist
        ValueError: If old or new is invalid
    """
    _check_ref(old)
    _check_ref(new)

    options = extra_args if extra_args is not None else ['--no-renames']
    output = run_git_command(
        ['diff-tree', '-r', '-z', '--no-commit-id'] + options + [old, new],
        repo_path
    )

    return _parse_raw_diff_output(output)
