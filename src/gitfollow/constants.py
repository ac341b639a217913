"""
Centralized constants for the gitfollow package.

This module contains:
- Rename/copy detection defaults
- Git subprocess limits
"""

# =============================================================================
# Rename Detection Constants
# =============================================================================

# Minimum similarity (percent) for a delete+add pair to count as a rename,
# and for an add to count as a copy of an existing file.
DEFAULT_RENAME_THRESHOLD = 60

# Copies are followed as well as renames.
DEFAULT_DETECT_COPIES = True

# Only files modified in the same change are copy sources unless this is set.
# Considering every unchanged file as a source is very slow on large trees.
DEFAULT_FIND_COPIES_HARDER = False

# Maximum number of rename/copy candidates git will consider per tree pair.
# None keeps git's own limit (diff.renameLimit).
DEFAULT_RENAME_LIMIT = None

# =============================================================================
# Git Command Constants
# =============================================================================

# Maximum seconds a single git subprocess may run
GIT_COMMAND_TIMEOUT = 30

# Characters accepted in a user-supplied git reference.
# Alphanumeric (SHA hashes, branch names, tags), path separators and naming
# (/ - _ .) and reference modifiers (^ ~ @ { }, e.g. HEAD~3, main@{1}).
GIT_REF_CHARACTERS: frozenset[str] = frozenset(
    'abcdefghijklmnopqrstuvwxyz'
    'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    '0123456789'
    '/_-.^~@{}'
)

# Length limit for references
GIT_REF_MAX_LENGTH = 256
