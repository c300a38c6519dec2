"""
Tests for repository priority scoring and sorting.
"""
from types import SimpleNamespace

import pytest

from overall.core.errors import ValidationError
from overall.core.priority import (
    RepoPriority, repo_status_priority, worst_priority, is_unmerged, is_out_of_sync, sort_repositories,
)


def branch(ahead_by=0, behind_by=0):
    return SimpleNamespace(ahead_by=ahead_by, behind_by=behind_by)


def local(uncommitted_files=0, unpushed_commits=0, behind_commits=0):
    return SimpleNamespace(uncommitted_files=uncommitted_files, unpushed_commits=unpushed_commits,
                           behind_commits=behind_commits)


def test_nothing_pending_is_complete():
    assert repo_status_priority([branch(), branch()]) == RepoPriority.COMPLETE
    assert repo_status_priority([], local()) == RepoPriority.COMPLETE


def test_unpushed_or_behind_local_commits_need_sync():
    assert repo_status_priority([], local(unpushed_commits=1)) == RepoPriority.NEEDS_SYNC
    assert repo_status_priority([], local(behind_commits=2)) == RepoPriority.NEEDS_SYNC


def test_branch_behind_default_needs_sync_even_when_local_is_clean():
    """An open pull request branch behind the default branch with a clean checkout"""
    branches = [branch(), branch(ahead_by=2, behind_by=1)]
    assert repo_status_priority(branches, local()) == RepoPriority.NEEDS_SYNC


def test_uncommitted_files_are_local_changes():
    assert repo_status_priority([branch()], local(uncommitted_files=3)) == RepoPriority.LOCAL_CHANGES


def test_unpushed_beats_uncommitted():
    assert repo_status_priority([], local(uncommitted_files=3, unpushed_commits=1)) == RepoPriority.NEEDS_SYNC


def test_branch_only_ahead_needs_sync_even_when_local_is_clean():
    assert repo_status_priority([branch(), branch(ahead_by=3)], local()) == RepoPriority.NEEDS_SYNC
    assert repo_status_priority([branch(ahead_by=4)]) == RepoPriority.NEEDS_SYNC


def test_diverged_branch_beats_uncommitted():
    assert repo_status_priority([branch(ahead_by=4)], local(uncommitted_files=1)) == RepoPriority.NEEDS_SYNC


def test_is_out_of_sync():
    assert is_out_of_sync(branch(ahead_by=1))
    assert is_out_of_sync(branch(behind_by=1))
    assert not is_out_of_sync(branch())


def test_is_unmerged():
    assert is_unmerged(branch(ahead_by=1))
    assert not is_unmerged(branch(ahead_by=1, behind_by=1))
    assert not is_unmerged(branch())


def test_worst_priority():
    assert worst_priority([3, 2, 1]) == RepoPriority.LOCAL_CHANGES
    assert worst_priority([RepoPriority.COMPLETE]) == RepoPriority.COMPLETE
    assert worst_priority([]) == RepoPriority.COMPLETE


def _entry(name, priority, language='Python', last_push='2024-01-01T00:00:00+00:00'):
    return {'name': name, 'statusPriority': priority, 'language': language, 'lastPush': last_push}


def test_sort_repositories_priority_first_then_column():
    entries = [
        _entry('zeta', 2),
        _entry('alpha', 3),
        _entry('beta', 0),
        _entry('Gamma', 2),
    ]

    assert [e['name'] for e in sort_repositories(entries, 'name')] == ['beta', 'Gamma', 'zeta', 'alpha']
    assert [e['name'] for e in sort_repositories(entries, 'name', ascending=False)] == [
        'beta', 'zeta', 'Gamma', 'alpha'
    ]


def test_sort_repositories_by_last_push():
    entries = [
        _entry('a', 1, last_push='2024-01-01T00:00:00+00:00'),
        _entry('b', 1, last_push='2024-03-01T00:00:00+00:00'),
    ]
    assert [e['name'] for e in sort_repositories(entries, 'lastPush', ascending=False)] == ['b', 'a']


def test_sort_repositories_keeps_input_order_without_column():
    entries = [_entry('b', 1), _entry('a', 1), _entry('c', 0)]
    assert [e['name'] for e in sort_repositories(entries)] == ['c', 'b', 'a']


def test_sort_repositories_rejects_unknown_column():
    with pytest.raises(ValidationError):
        sort_repositories([_entry('a', 1)], 'stars')
