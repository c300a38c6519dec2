"""
Tests for the data store: replace-wholesale children, ordering, groups,
local roots and persistence edge cases.
"""
import pytest
from sqlalchemy import text

from overall.core.errors import ConstraintViolationError, CorruptRecordError, DuplicateLocalRootError, NotFoundError
from overall.models import BranchStatus, PullRequestState

from factories import T0, at, make_repo, make_branch, make_pr, make_commit, make_local_status


def _branch_rows(store, repo_id):
    return [(b.name, b.sha, b.ahead_by, b.behind_by) for b in store.list_branches(repo_id)]


def test_upsert_repository_replaces_fields(store):
    """Upserting the same id twice keeps one row with the newest fields"""
    store.upsert_repository(make_repo(language='Python', description='first'))
    store.upsert_repository(make_repo(language='Rust', description=None, pushed_at=at(5)))

    repos = store.list_repositories()
    assert len(repos) == 1
    assert repos[0].id == 'acme/widgets'
    assert repos[0].language == 'Rust'
    assert repos[0].description is None
    assert repos[0].pushed_at == at(5)


def test_timestamps_round_trip_as_utc(store):
    store.upsert_repository(make_repo(pushed_at=at(3)))

    repo = store.get_repository('acme/widgets')
    assert repo.pushed_at == at(3)
    assert repo.pushed_at.utcoffset().total_seconds() == 0


def test_list_repositories_ordering(store):
    """Priority descending first, then most recently pushed"""
    store.upsert_repository(make_repo(name='old', pushed_at=at(1)))
    store.upsert_repository(make_repo(name='new', pushed_at=at(10)))
    store.upsert_repository(make_repo(name='urgent', pushed_at=at(0), priority=5.0))

    assert [r.name for r in store.list_repositories()] == ['urgent', 'new', 'old']


def test_list_repositories_updated_since(store):
    store.upsert_repository(make_repo(name='old', pushed_at=at(1)))
    store.upsert_repository(make_repo(name='new', pushed_at=at(10)))

    assert [r.name for r in store.list_repositories_updated_since(at(1))] == ['new']


def test_replace_branches_is_not_a_merge(store):
    """The second branch set fully replaces the first, whatever the overlap"""
    store.upsert_repository(make_repo())
    store.replace_branches('acme/widgets', [
        make_branch('main'),
        make_branch('feat-x', ahead_by=2),
        make_branch('gone', ahead_by=1),
    ])

    store.replace_branches('acme/widgets', [
        make_branch('main'),
        make_branch('feat-x', ahead_by=3, sha='b' * 40),
    ])

    assert _branch_rows(store, 'acme/widgets') == [
        ('feat-x', 'b' * 40, 3, 0),
        ('main', make_branch('main').sha, 0, 0),
    ]


def test_replace_branches_with_empty_set(store):
    store.upsert_repository(make_repo())
    store.replace_branches('acme/widgets', [make_branch('main')])
    store.replace_branches('acme/widgets', [])

    assert store.list_branches('acme/widgets') == []


def test_replace_branches_returns_ids_in_input_order(store):
    store.upsert_repository(make_repo())
    rows = store.replace_branches('acme/widgets', [make_branch('zeta'), make_branch('alpha')])

    assert [r.name for r in rows] == ['zeta', 'alpha']
    assert all(r.id is not None for r in rows)


def test_replace_branches_only_touches_one_repository(store):
    store.upsert_repository(make_repo(name='a'))
    store.upsert_repository(make_repo(name='b'))
    store.replace_branches('acme/a', [make_branch('main')])
    store.replace_branches('acme/b', [make_branch('main'), make_branch('dev')])

    store.replace_branches('acme/a', [])

    assert [b.name for b in store.list_branches('acme/b')] == ['dev', 'main']


def test_replace_branches_drops_commits_and_unlinks_pull_requests(store):
    store.upsert_repository(make_repo())
    [branch] = store.replace_branches('acme/widgets', [make_branch('feat-x', ahead_by=1)])
    store.replace_commits(branch.id, [make_commit('c1')])
    pr = make_pr(1, head_branch='feat-x')
    pr.branch_id = branch.id
    store.replace_pull_requests('acme/widgets', [pr])

    store.replace_branches('acme/widgets', [make_branch('feat-x', ahead_by=1)])

    assert store.list_commits(branch.id) == []
    [stored_pr] = store.list_pull_requests('acme/widgets')
    assert stored_pr.branch_id is None
    assert stored_pr.head_branch == 'feat-x'


def test_duplicate_branch_names_violate_constraint(store):
    store.upsert_repository(make_repo())

    with pytest.raises(ConstraintViolationError):
        store.replace_branches('acme/widgets', [make_branch('main'), make_branch('main')])


def test_branches_for_unknown_repository_violate_constraint(store):
    with pytest.raises(ConstraintViolationError):
        store.replace_branches('acme/missing', [make_branch('main')])


def test_update_branch_statuses(store):
    store.upsert_repository(make_repo())
    rows = store.replace_branches('acme/widgets', [make_branch('main'), make_branch('feat-x')])

    store.update_branch_statuses({rows[1].id: BranchStatus.IN_REVIEW})

    statuses = {b.name: b.status for b in store.list_branches('acme/widgets')}
    assert statuses == {'main': BranchStatus.READY_FOR_PR, 'feat-x': BranchStatus.IN_REVIEW}


def test_replace_pull_requests_and_ordering(store):
    store.upsert_repository(make_repo())
    store.replace_pull_requests('acme/widgets', [make_pr(1), make_pr(7), make_pr(3)])
    store.replace_pull_requests('acme/widgets', [make_pr(2), make_pr(9, state=PullRequestState.MERGED)])

    prs = store.list_pull_requests('acme/widgets')
    assert [(pr.number, pr.state) for pr in prs] == [
        (9, PullRequestState.MERGED),
        (2, PullRequestState.OPEN),
    ]


def test_replace_commits_newest_first(store):
    store.upsert_repository(make_repo())
    [branch] = store.replace_branches('acme/widgets', [make_branch('feat-x', ahead_by=2)])

    store.replace_commits(branch.id, [make_commit('old', committed_date=at(1))])
    store.replace_commits(branch.id, [
        make_commit('c1', committed_date=at(1)),
        make_commit('c2', committed_date=at(2)),
    ])

    assert [c.sha for c in store.list_commits(branch.id)] == ['c2', 'c1']


def test_unknown_stored_enum_values_fall_back(store):
    """Unrecognized status and state strings read back as defaults"""
    store.upsert_repository(make_repo())
    store.replace_branches('acme/widgets', [make_branch('feat-x')])
    store.replace_pull_requests('acme/widgets', [make_pr(1)])

    with store.engine.begin() as conn:
        conn.execute(text("UPDATE branches SET status = 'Frobnicated'"))
        conn.execute(text("UPDATE pull_requests SET state = 'DRAFT'"))

    assert store.list_branches('acme/widgets')[0].status == BranchStatus.READY_FOR_PR
    assert store.list_pull_requests('acme/widgets')[0].state == PullRequestState.CLOSED


def test_corrupt_timestamp_raises(store):
    store.upsert_repository(make_repo())

    with store.engine.begin() as conn:
        conn.execute(text("UPDATE repositories SET pushed_at = 'not a timestamp'"))

    with pytest.raises(CorruptRecordError):
        store.list_repositories()


def test_store_recovers_after_error(store):
    """A failed transaction leaves the store usable"""
    store.upsert_repository(make_repo())
    with pytest.raises(ConstraintViolationError):
        store.replace_branches('acme/widgets', [make_branch('main'), make_branch('main')])

    store.replace_branches('acme/widgets', [make_branch('main')])
    assert [b.name for b in store.list_branches('acme/widgets')] == ['main']


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

def test_create_group_assigns_next_display_order(store):
    first = store.create_group('Work')
    second = store.create_group('Personal')
    explicit = store.create_group('Pinned', display_order=10)
    after = store.create_group('Later')

    assert first.display_order == 0
    assert second.display_order == 1
    assert explicit.display_order == 10
    assert after.display_order == 11
    assert [g.name for g in store.list_groups()] == ['Work', 'Personal', 'Pinned', 'Later']


def test_single_group_invariant(store):
    """Every add/move/remove sequence leaves a repository in at most one group"""
    store.upsert_repository(make_repo())
    g1 = store.create_group('One')
    g2 = store.create_group('Two')

    store.add_repo_to_group('acme/widgets', g1.id)
    assert store.group_ids_for_repo('acme/widgets') == [g1.id]

    store.add_repo_to_group('acme/widgets', g2.id)
    assert store.group_ids_for_repo('acme/widgets') == [g2.id]

    store.add_repo_to_group('acme/widgets', g2.id)
    assert store.group_ids_for_repo('acme/widgets') == [g2.id]

    store.move_repo_to_group('acme/widgets', g1.id)
    assert store.group_ids_for_repo('acme/widgets') == [g1.id]

    # Removing from a group the repository is not in changes nothing
    store.remove_repo_from_group('acme/widgets', g2.id)
    assert store.group_ids_for_repo('acme/widgets') == [g1.id]

    store.remove_repo_from_group('acme/widgets', g1.id)
    assert store.group_ids_for_repo('acme/widgets') == []

    store.add_repo_to_group('acme/widgets', g2.id)
    store.remove_repo_from_all_groups('acme/widgets')
    assert store.group_ids_for_repo('acme/widgets') == []


def test_membership_requires_known_repo_and_group(store):
    store.upsert_repository(make_repo())
    group = store.create_group('One')

    with pytest.raises(NotFoundError):
        store.add_repo_to_group('acme/missing', group.id)
    with pytest.raises(NotFoundError):
        store.move_repo_to_group('acme/widgets', group.id + 100)


def test_grouped_and_ungrouped_listing(store):
    store.upsert_repository(make_repo(name='a', pushed_at=at(1)))
    store.upsert_repository(make_repo(name='b', pushed_at=at(3)))
    store.upsert_repository(make_repo(name='c', pushed_at=at(2)))
    group = store.create_group('One')
    store.add_repo_to_group('acme/a', group.id)
    store.add_repo_to_group('acme/b', group.id)

    assert [r.name for r in store.repos_in_group(group.id)] == ['b', 'a']
    assert [r.name for r in store.ungrouped_repos()] == ['c']


def test_delete_group_cascades_memberships(store):
    """Deleting a group ungroups its members without deleting them"""
    store.upsert_repository(make_repo(name='r1'))
    store.upsert_repository(make_repo(name='r2'))
    group = store.create_group('Doomed')
    store.add_repo_to_group('acme/r1', group.id)
    store.add_repo_to_group('acme/r2', group.id)

    assert store.delete_group(group.id) is True

    assert store.list_groups() == []
    assert sorted(r.id for r in store.ungrouped_repos()) == ['acme/r1', 'acme/r2']
    assert store.group_ids_for_repo('acme/r1') == []
    assert store.delete_group(group.id) is False


def test_rename_group(store):
    group = store.create_group('Old')

    assert store.rename_group(group.id, 'New') is True
    assert store.get_group(group.id).name == 'New'
    assert store.rename_group(group.id + 1, 'Nope') is False


def test_duplicate_group_names_allowed(store):
    store.create_group('Same')
    store.create_group('Same')

    assert [g.name for g in store.list_groups()] == ['Same', 'Same']


# ---------------------------------------------------------------------------
# Local repositories and config
# ---------------------------------------------------------------------------

def test_duplicate_local_root_is_distinguishable(store):
    store.add_local_repo_root('/home/dev/src')

    with pytest.raises(DuplicateLocalRootError) as exc_info:
        store.add_local_repo_root('/home/dev/src')

    assert exc_info.value.path == '/home/dev/src'
    assert "already configured" in str(exc_info.value)


def test_local_root_toggle_and_remove(store):
    root = store.add_local_repo_root('/home/dev/src')
    assert root.enabled is True

    assert store.set_local_repo_root_enabled(root.id, False) is True
    assert store.list_local_repo_roots()[0].enabled is False

    assert store.remove_local_repo_root(root.id) is True
    assert store.list_local_repo_roots() == []
    assert store.remove_local_repo_root(root.id) is False
    assert store.set_local_repo_root_enabled(root.id, True) is False


def test_local_status_is_replaced_wholesale(store):
    store.upsert_local_repo_status(make_local_status(uncommitted_files=4, current_branch='feat'))
    store.upsert_local_repo_status(make_local_status(uncommitted_files=0, current_branch=None, last_checked=at(1)))

    status = store.get_local_repo_status('acme/widgets')
    assert status.uncommitted_files == 0
    assert status.current_branch is None
    assert status.is_dirty is False
    assert status.last_checked == at(1)
    assert len(store.list_local_repo_statuses()) == 1


def test_local_status_dirty_flag(store):
    store.upsert_local_repo_status(make_local_status(unpushed_commits=1))

    assert store.get_local_repo_status('acme/widgets').is_dirty is True


def test_prune_local_statuses(store):
    store.upsert_local_repo_status(make_local_status('acme/a'))
    store.upsert_local_repo_status(make_local_status('acme/b'))
    store.upsert_local_repo_status(make_local_status('acme/c'))

    assert store.prune_local_repo_statuses(['acme/b']) == 2
    assert [s.repo_id for s in store.list_local_repo_statuses()] == ['acme/b']


def test_config_round_trip(store):
    assert store.get_config('last_sync_at') is None

    store.set_config('last_sync_at', T0.isoformat())
    store.set_config('last_sync_at', at(1).isoformat())

    assert store.get_config('last_sync_at') == at(1).isoformat()
