"""Tests for the gitfollow command-line interface."""

import json
from types import SimpleNamespace

import pytest
from rich.console import Console

from gitfollow.cli import (
    EXIT_CANCELLED,
    EXIT_ERROR,
    EXIT_OK,
    build_parser,
    history_to_dict,
    main,
)
from gitfollow.follow import FollowLog
from gitfollow.git.repository import Repository


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep table cells and messages on one line regardless of terminal size."""
    monkeypatch.setattr('gitfollow.cli.console', Console(width=200))


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(['new.txt'])
        assert args.path == 'new.txt'
        assert args.threshold == 60
        assert args.no_copies is False
        assert args.match == 'exact'
        assert args.timeout is None
        assert args.verbose == 0

    def test_rejects_unknown_match(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['a.txt', '--match', 'fuzzy'])


class TestMain:
    def test_prints_history(self, renamed_repo, capsys):
        builder, hashes = renamed_repo
        code = main(['new.txt', '--repo', str(builder.path)])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        for commit_hash in hashes:
            assert commit_hash[:7] in out
        assert 'old.txt' in out

    def test_no_history(self, linear_repo, capsys):
        builder, _ = linear_repo
        code = main(['never.txt', '--repo', str(builder.path)])

        assert code == EXIT_OK
        assert 'No commits found' in capsys.readouterr().out

    def test_writes_json(self, renamed_repo, tmp_path):
        builder, (c1, c2, c3) = renamed_repo
        output = tmp_path / 'history.json'

        code = main(['new.txt', '--repo', str(builder.path), '--output', str(output)])

        assert code == EXIT_OK
        data = json.loads(output.read_text())
        assert data['path'] == 'new.txt'
        assert data['paths'] == ['new.txt', 'old.txt']
        assert [c['hash'] for c in data['commits']] == [c3, c2, c1]
        assert data['renames'] == [{
            'commit': c2,
            'source': c1,
            'type': 'rename',
            'old_path': 'old.txt',
            'new_path': 'new.txt',
            'score': 100,
        }]

    def test_not_a_repository(self, tmp_path, capsys):
        code = main(['a.txt', '--repo', str(tmp_path)])

        assert code == EXIT_ERROR
        assert 'Not a git repository' in capsys.readouterr().out

    def test_bad_threshold(self, linear_repo, capsys):
        builder, _ = linear_repo
        code = main(['a.txt', '--repo', str(builder.path), '--threshold', '150'])

        assert code == EXIT_ERROR
        assert 'Rename threshold' in capsys.readouterr().out

    def test_bad_ref(self, linear_repo, capsys):
        builder, _ = linear_repo
        code = main(['a.txt', '--repo', str(builder.path), '--ref', 'no-such-branch'])

        assert code == EXIT_ERROR
        assert 'Error' in capsys.readouterr().out

    def test_ref_limits_history(self, renamed_repo, tmp_path):
        builder, (c1, c2, _) = renamed_repo
        output = tmp_path / 'history.json'

        main(['new.txt', '--repo', str(builder.path), '--ref', c2, '--output', str(output)])

        data = json.loads(output.read_text())
        assert [c['hash'] for c in data['commits']] == [c2, c1]

    def test_timeout_reports_partial(self, renamed_repo, capsys, monkeypatch):
        builder, _ = renamed_repo
        ticks = iter(range(0, 1000, 10))
        monkeypatch.setattr(
            'gitfollow.follow.time',
            SimpleNamespace(monotonic=lambda: next(ticks)),
        )

        code = main(['new.txt', '--repo', str(builder.path), '--timeout', '5'])

        assert code == EXIT_CANCELLED
        assert 'timed out' in capsys.readouterr().out


class TestHistoryToDict:
    def test_no_renames(self, linear_repo):
        builder, hashes = linear_repo
        history = FollowLog(Repository(builder.path)).collect_history('a.txt')

        data = history_to_dict(history)

        assert data['renames'] == []
        assert [c['hash'] for c in data['commits']] == list(reversed(hashes))
        assert data['commits'][-1]['parents'] == []
        json.dumps(data)
