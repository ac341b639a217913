"""Git access layer: commands, rename detection and the repository handle."""

from .commands import (
    GitCommandError,
    GitParseError,
    Commit,
    ChangeType,
    DiffEntry,
    run_git_command,
    get_commit,
    get_log,
    diff_trees,
)
from .renames import (
    RENAME_CHANGE_TYPES,
    RenameDetector,
)
from .repository import Repository

__all__ = [
    # Exceptions
    'GitCommandError',
    'GitParseError',
    # Data classes
    'Commit',
    'ChangeType',
    'DiffEntry',
    # Rename detection
    'RENAME_CHANGE_TYPES',
    'RenameDetector',
    # Repository handle
    'Repository',
    # Functions
    'run_git_command',
    'get_commit',
    'get_log',
    'diff_trees',
]
