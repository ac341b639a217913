"""Rename and copy detection between two trees."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from gitfollow.constants import (
    DEFAULT_DETECT_COPIES,
    DEFAULT_FIND_COPIES_HARDER,
    DEFAULT_RENAME_LIMIT,
    DEFAULT_RENAME_THRESHOLD,
)
from gitfollow.git.commands import ChangeType, DiffEntry, diff_trees

logger = logging.getLogger(__name__)

RENAME_CHANGE_TYPES = frozenset({ChangeType.RENAME, ChangeType.COPY})


class RenameDetector:
    """
    Reclassify delete+add pairs of a tree diff as renames or copies.

    Pairing is done by git's diffcore on blob similarity. A pair is kept
    when the similarity reaches `threshold` percent. Each call to compute()
    works on a single pair of trees and keeps no state between calls.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_RENAME_THRESHOLD,
        detect_copies: bool = DEFAULT_DETECT_COPIES,
        find_copies_harder: bool = DEFAULT_FIND_COPIES_HARDER,
        rename_limit: Optional[int] = DEFAULT_RENAME_LIMIT,
    ):
        """
        Args:
            threshold: Minimum similarity percentage, 0-100
            detect_copies: Also report additions copied from another file
            find_copies_harder: Consider unmodified files as copy sources
            rename_limit: Maximum candidates git considers, None for git's default

        Raises:
            ValueError: If threshold or rename_limit is out of range
        """
        if not 0 <= threshold <= 100:
            raise ValueError(f"Rename threshold must be between 0 and 100: {threshold}")
        if rename_limit is not None and rename_limit <= 0:
            raise ValueError(f"Rename limit must be positive: {rename_limit}")

        self.threshold = threshold
        self.detect_copies = detect_copies
        self.find_copies_harder = find_copies_harder
        self.rename_limit = rename_limit

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(threshold={self.threshold}, "
            f"detect_copies={self.detect_copies}, "
            f"find_copies_harder={self.find_copies_harder}, "
            f"rename_limit={self.rename_limit})"
        )

    def diff_options(self) -> list[str]:
        """git diff-tree options implementing this detector's policy."""
        options = [f'-M{self.threshold}%']
        if self.detect_copies:
            options.append(f'-C{self.threshold}%')
            if self.find_copies_harder:
                options.append('--find-copies-harder')
        if self.rename_limit is not None:
            options.append(f'-l{self.rename_limit}')
        return options

    def compute(self, repo_path: Path, old: str, new: str) -> list[DiffEntry]:
        """
        Diff two commits' trees with rename/copy detection applied.

        Returns:
            DiffEntry list where matched pairs appear as RENAME or COPY
            entries carrying both paths and a similarity score.
        """
        entries = diff_trees(repo_path, old, new, extra_args=self.diff_options())
        logger.debug(
            "%s..%s: %d entries, %d renames/copies",
            old[:7],
            new[:7],
            len(entries),
            sum(1 for e in entries if e.change_type in RENAME_CHANGE_TYPES),
        )
        return entries
