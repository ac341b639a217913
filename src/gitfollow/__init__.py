"""
gitfollow - Follow a file's history across renames and copies.

Walks a git repository's commit graph the way `git log --follow` does,
returning every commit that touched a file under any of its former names.
"""

__version__ = "0.1.0"

# Git access layer
from gitfollow.git import (
    GitCommandError,
    GitParseError,
    Commit,
    ChangeType,
    DiffEntry,
    RenameDetector,
    Repository,
)

# History walker
from gitfollow.follow import (
    PathMatch,
    FollowError,
    WalkCancelled,
    RenameEvent,
    FileHistory,
    FollowLog,
    follow_log,
    normalize_path,
)

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "GitCommandError",
    "GitParseError",
    "FollowError",
    "WalkCancelled",
    # Models
    "Commit",
    "ChangeType",
    "DiffEntry",
    "RenameEvent",
    "FileHistory",
    "PathMatch",
    # Repository
    "Repository",
    "RenameDetector",
    # Walker
    "FollowLog",
    "follow_log",
    "normalize_path",
]
