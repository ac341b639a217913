"""
Command-line interface for gitfollow
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape as rich_escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gitfollow.constants import (
    DEFAULT_FIND_COPIES_HARDER,
    DEFAULT_RENAME_LIMIT,
    DEFAULT_RENAME_THRESHOLD,
)
from gitfollow.follow import (
    FileHistory,
    FollowLog,
    PathMatch,
    WalkCancelled,
)
from gitfollow.git import (
    GitCommandError,
    GitParseError,
    RenameDetector,
    Repository,
)

# Create a console instance for all output
console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 2


def _first_line(message: str, width: int = 60) -> str:
    return message.split('\n')[0][:width]


def print_history(history: FileHistory) -> None:
    """Print the followed commits and renames with Rich styling."""
    summary = Text()
    summary.append("Commits: ", style="bold")
    summary.append(f"{len(history.commits)}\n", style="cyan bold")
    summary.append("Renames: ", style="bold")
    summary.append(f"{len(history.renames)}", style="green bold")

    console.print(Panel(
        summary,
        title=f"[bold blue]History of {rich_escape(history.path)}[/]",
        border_style="blue",
    ))

    if not history.commits:
        console.print("[yellow]No commits found for this path.[/]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Date", style="dim")
    table.add_column("Author")
    table.add_column("Message")

    for commit in history.commits:
        table.add_row(
            commit.short_hash,
            commit.date,
            rich_escape(commit.author),
            rich_escape(_first_line(commit.message)),
        )

    console.print(table)

    if history.renames:
        console.print("\n[bold green]Renames followed:[/]")
        for rename in history.renames:
            score = f" ({rename.score}%)" if rename.score is not None else ""
            console.print(
                f"  [cyan]{rename.commit.short_hash}[/] "
                f"{rename.change_type.value.upper()}{score}: "
                f"[white]{rich_escape(rename.old_path)}[/] → "
                f"[green]{rich_escape(rename.new_path)}[/]"
            )


def history_to_dict(history: FileHistory) -> dict:
    """Convert a FileHistory to JSON-serializable data."""
    return {
        'path': history.path,
        'paths': list(history.paths),
        'commits': [
            {
                'hash': c.hash,
                'parents': list(c.parents),
                'author': c.author,
                'date': c.date,
                'message': c.message,
            }
            for c in history.commits
        ],
        'renames': [
            {
                'commit': r.commit.hash,
                'source': r.source.hash,
                'type': r.change_type.value,
                'old_path': r.old_path,
                'new_path': r.new_path,
                'score': r.score,
            }
            for r in history.renames
        ],
    }


def save_history(history: FileHistory, output_path: Path) -> None:
    """Save a followed history to a JSON file."""
    with open(output_path, 'w') as f:
        json.dump(history_to_dict(history), f, indent=2)

    console.print(f"\n[bold green]✓[/] History saved to [underline]{rich_escape(str(output_path))}[/]")


def _configure_logging(verbose: int) -> None:
    if not verbose:
        return
    level = logging.DEBUG if verbose > 1 else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitfollow",
        description="Show a file's git history, following renames and copies"
    )
    parser.add_argument(
        "path",
        help="File path, relative to the repository root"
    )
    parser.add_argument(
        "--repo",
        type=Path,
        default=Path("."),
        help="Repository directory (default: current directory)"
    )
    parser.add_argument(
        "--ref",
        help="Commit to start from (default: HEAD)"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=DEFAULT_RENAME_THRESHOLD,
        help=f"Rename/copy similarity threshold in percent (default: {DEFAULT_RENAME_THRESHOLD})"
    )
    parser.add_argument(
        "--no-copies",
        action="store_true",
        help="Follow renames only, not copies"
    )
    parser.add_argument(
        "--find-copies-harder",
        action="store_true",
        default=DEFAULT_FIND_COPIES_HARDER,
        help="Consider unmodified files as copy sources (slow)"
    )
    parser.add_argument(
        "--rename-limit",
        type=int,
        default=DEFAULT_RENAME_LIMIT,
        help="Maximum rename/copy candidates per diff (default: git's limit)"
    )
    parser.add_argument(
        "--match",
        choices=[m.value for m in PathMatch],
        default=PathMatch.EXACT.value,
        help="How rename targets are matched against the path (default: exact)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Give up after this many seconds"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Save history to JSON file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-vv for git commands)"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        detector = RenameDetector(
            threshold=args.threshold,
            detect_copies=not args.no_copies,
            find_copies_harder=args.find_copies_harder,
            rename_limit=args.rename_limit,
        )
        repository = Repository(args.repo, rename_detector=detector)
        walker = FollowLog(
            repository,
            start=args.ref,
            match=PathMatch(args.match),
            timeout=args.timeout,
        )
    except (ValueError, GitCommandError) as e:
        console.print(f"[bold red]Error:[/] {rich_escape(str(e))}")
        return EXIT_ERROR

    try:
        history = walker.collect_history(args.path)
    except WalkCancelled as e:
        console.print(
            f"[bold yellow]Stopped:[/] {rich_escape(str(e))} "
            f"({len(e.commits)} commits collected)"
        )
        return EXIT_CANCELLED
    except (ValueError, GitCommandError, GitParseError) as e:
        console.print(f"[bold red]Error:[/] {rich_escape(str(e))}")
        return EXIT_ERROR

    print_history(history)

    if args.output:
        save_history(history, args.output)

    return EXIT_OK


if __name__ == "__main__":
    exit(main())
