"""Shared fixtures: throwaway git repositories built with the git CLI."""

import os
import subprocess
import tempfile
from pathlib import Path

import pytest


class RepoBuilder:
    """Create commits in a temporary repository, one second apart."""

    def __init__(self, path: Path):
        self.path = path
        self._clock = 1_700_000_000
        self.git('init')
        self.git('config', 'user.email', 'test@example.com')
        self.git('config', 'user.name', 'Test User')
        self.git('config', 'commit.gpgsign', 'false')

    def git(self, *args: str) -> str:
        self._clock += 1
        env = dict(
            os.environ,
            GIT_AUTHOR_DATE=f'{self._clock} +0000',
            GIT_COMMITTER_DATE=f'{self._clock} +0000',
        )
        result = subprocess.run(
            ['git', *args], cwd=self.path, capture_output=True, text=True,
            errors='surrogateescape', env=env
        )
        assert result.returncode == 0, result.stderr
        return result.stdout

    def write(self, name: str, content: str) -> None:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit(self, message: str) -> str:
        """Stage everything and commit. Returns the new commit hash."""
        self.git('add', '-A')
        self.git('commit', '-m', message)
        return self.git('rev-parse', 'HEAD').strip()


def lines(prefix: str, count: int = 20) -> str:
    """File content large enough for git's similarity scoring."""
    return ''.join(f'{prefix} line {i}\n' for i in range(count))


@pytest.fixture
def repo_builder():
    """A fresh git repository with no commits."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield RepoBuilder(Path(tmpdir))


@pytest.fixture
def linear_repo(repo_builder):
    """
    Three commits, each modifying a.txt, plus an unrelated file.

    Returns (builder, [c1, c2, c3]).
    """
    b = repo_builder
    b.write('a.txt', lines('one'))
    b.write('other.txt', lines('other'))
    c1 = b.commit('Add a.txt')
    b.write('a.txt', lines('one') + 'two\n')
    c2 = b.commit('Edit a.txt')
    b.write('a.txt', lines('one') + 'two\nthree\n')
    c3 = b.commit('Edit a.txt again')
    return b, [c1, c2, c3]


@pytest.fixture
def renamed_repo(repo_builder):
    """
    old.txt created in C1, renamed to new.txt in C2, new.txt edited in C3.

    Returns (builder, [c1, c2, c3]).
    """
    b = repo_builder
    b.write('old.txt', lines('content'))
    c1 = b.commit('Create old.txt')
    b.git('mv', 'old.txt', 'new.txt')
    c2 = b.commit('Rename old.txt to new.txt')
    b.write('new.txt', lines('content') + 'edited\n')
    c3 = b.commit('Edit new.txt')
    return b, [c1, c2, c3]
