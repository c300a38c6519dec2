"""
Tests for the git-backed local scanner.
"""
import os
import subprocess

import pytest

from overall.core.errors import GatewayError
from overall.gateway.local_git import GitLocalScanner, extract_repo_id


class FakeGit:
    """Canned answers for git subcommands, keyed by their joined arguments"""

    def __init__(self, answers):
        self.answers = answers
        self.commands = []

    def __call__(self, cmd, cwd=None, **kwargs):
        self.commands.append((cwd, cmd[1:]))
        returncode, stdout = self.answers.get(' '.join(cmd[1:]), (1, ''))
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr='fatal: nope\n')


def _stub_git(monkeypatch, answers):
    fake = FakeGit(answers)
    monkeypatch.setattr('overall.gateway.local_git.subprocess.run', fake)
    return fake


def test_extract_repo_id():
    assert extract_repo_id('/home/dev/src/acme/widgets') == 'acme/widgets'
    assert extract_repo_id('acme/widgets') == 'acme/widgets'
    assert extract_repo_id('/widgets') is None
    assert extract_repo_id('widgets') is None


def test_scan_for_repos(temp_dir):
    for name in ('beta', 'alpha'):
        os.makedirs(os.path.join(temp_dir, name, '.git'))
    os.makedirs(os.path.join(temp_dir, 'not-a-repo'))
    with open(os.path.join(temp_dir, 'README'), 'w') as f:
        f.write('hello')

    found = GitLocalScanner().scan_for_repos(temp_dir)

    assert found == [os.path.join(temp_dir, 'alpha'), os.path.join(temp_dir, 'beta')]


def test_scan_for_repos_errors(temp_dir):
    scanner = GitLocalScanner()

    with pytest.raises(GatewayError, match='Path does not exist'):
        scanner.scan_for_repos(os.path.join(temp_dir, 'missing'))

    path = os.path.join(temp_dir, 'file.txt')
    with open(path, 'w') as f:
        f.write('x')
    with pytest.raises(GatewayError, match='Not a directory'):
        scanner.scan_for_repos(path)


def test_repo_status(monkeypatch):
    git = _stub_git(monkeypatch, {
        'rev-parse --abbrev-ref HEAD': (0, 'feat-x\n'),
        'status --porcelain': (0, ' M src/app.py\n?? notes.txt\n'),
        'rev-parse --abbrev-ref feat-x@{upstream}': (0, 'origin/feat-x\n'),
        'rev-list --left-right --count feat-x...origin/feat-x': (0, '2\t5\n'),
    })

    status = GitLocalScanner().get_repo_status('/home/dev/src/acme/widgets')

    assert status.repo_id == 'acme/widgets'
    assert status.current_branch == 'feat-x'
    assert status.uncommitted_files == 2
    assert status.unpushed_commits == 2
    assert status.behind_commits == 5
    assert status.is_dirty is True
    assert all(cwd == '/home/dev/src/acme/widgets' for cwd, _ in git.commands)


def test_repo_status_detached_head(monkeypatch):
    git = _stub_git(monkeypatch, {
        'rev-parse --abbrev-ref HEAD': (0, 'HEAD\n'),
        'status --porcelain': (0, ''),
    })

    status = GitLocalScanner().get_repo_status('/home/dev/src/acme/widgets')

    assert status.current_branch is None
    assert (status.unpushed_commits, status.behind_commits) == (0, 0)
    assert status.is_dirty is False
    assert not any(args[0] == 'rev-list' for _, args in git.commands)


def test_branch_without_upstream(monkeypatch):
    _stub_git(monkeypatch, {
        'rev-parse --abbrev-ref HEAD': (0, 'local-only\n'),
        'status --porcelain': (0, ''),
    })

    status = GitLocalScanner().get_repo_status('/home/dev/src/acme/widgets')

    assert status.current_branch == 'local-only'
    assert (status.unpushed_commits, status.behind_commits) == (0, 0)


def test_fetch_remote_failure(monkeypatch):
    _stub_git(monkeypatch, {})

    with pytest.raises(GatewayError, match='Git fetch failed'):
        GitLocalScanner().fetch_remote('/home/dev/src/acme/widgets')


def test_missing_git_binary(monkeypatch):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(2, 'No such file or directory', cmd[0])

    monkeypatch.setattr('overall.gateway.local_git.subprocess.run', missing)

    with pytest.raises(GatewayError):
        GitLocalScanner().get_repo_status('/home/dev/src/acme/widgets')


def test_unexecutable_git_binary(monkeypatch):
    def denied(cmd, **kwargs):
        raise PermissionError(13, 'Permission denied', cmd[0])

    monkeypatch.setattr('overall.gateway.local_git.subprocess.run', denied)

    with pytest.raises(GatewayError, match='Permission denied'):
        GitLocalScanner().fetch_remote('/home/dev/src/acme/widgets')
