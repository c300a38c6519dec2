"""
Tests for branch status classification.
"""
from overall.core.classifier import classify_branch_status, find_pull_request_for_branch
from overall.models import Branch, BranchStatus, PullRequest, PullRequestState


def branch(name='feat-x', id=1, ahead_by=1, behind_by=0):
    return Branch(id=id, repo_id='acme/widgets', name=name, sha='a' * 40, ahead_by=ahead_by, behind_by=behind_by)


def pr(number=1, state=PullRequestState.OPEN, branch_id=None, head_branch=None):
    return PullRequest(repo_id='acme/widgets', number=number, state=state, title=f"PR {number}",
                       branch_id=branch_id, head_branch=head_branch)


def test_default_branch_is_always_ready():
    main = branch('main', behind_by=5)

    assert classify_branch_status(main, [pr(head_branch='main')], 'main') == BranchStatus.READY_FOR_PR
    assert classify_branch_status(main, [], 'main') == BranchStatus.READY_FOR_PR


def test_default_branch_name_is_respected():
    trunk = branch('trunk')
    assert classify_branch_status(trunk, [pr(head_branch='trunk')], 'trunk') == BranchStatus.READY_FOR_PR
    assert classify_branch_status(trunk, [pr(head_branch='trunk')], 'main') == BranchStatus.IN_REVIEW


def test_no_pull_request_is_ready():
    assert classify_branch_status(branch(), [], 'main') == BranchStatus.READY_FOR_PR


def test_open_pull_request_up_to_date_is_in_review():
    assert classify_branch_status(branch(), [pr(branch_id=1)], 'main') == BranchStatus.IN_REVIEW


def test_open_pull_request_behind_needs_update():
    assert classify_branch_status(branch(behind_by=2), [pr(branch_id=1)], 'main') == BranchStatus.NEEDS_UPDATE


def test_merged_pull_request_is_ready():
    merged = pr(state=PullRequestState.MERGED, branch_id=1)
    assert classify_branch_status(branch(behind_by=3), [merged], 'main') == BranchStatus.READY_FOR_PR


def test_closed_pull_request_is_ready():
    closed = pr(state=PullRequestState.CLOSED, head_branch='feat-x')
    assert classify_branch_status(branch(), [closed], 'main') == BranchStatus.READY_FOR_PR


def test_unlinked_pull_request_matches_by_head_branch():
    prs = [pr(1, head_branch='other'), pr(2, head_branch='feat-x')]

    assert find_pull_request_for_branch(branch(), prs).number == 2
    assert classify_branch_status(branch(), prs, 'main') == BranchStatus.IN_REVIEW


def test_pull_request_linked_to_another_branch_does_not_match():
    """A linked pull request only matches its own branch, even with the same head name"""
    prs = [pr(1, branch_id=99, head_branch='feat-x')]

    assert find_pull_request_for_branch(branch(id=1), prs) is None
    assert classify_branch_status(branch(id=1), prs, 'main') == BranchStatus.READY_FOR_PR


def test_unrelated_unlinked_pull_request_does_not_match():
    assert classify_branch_status(branch(), [pr(head_branch='feat-y')], 'main') == BranchStatus.READY_FOR_PR
    assert classify_branch_status(branch(), [pr(head_branch=None)], 'main') == BranchStatus.READY_FOR_PR


def test_first_matching_pull_request_wins():
    prs = [
        pr(9, state=PullRequestState.MERGED, branch_id=1),
        pr(3, state=PullRequestState.OPEN, branch_id=1),
    ]
    assert classify_branch_status(branch(), prs, 'main') == BranchStatus.READY_FOR_PR
    assert classify_branch_status(branch(), list(reversed(prs)), 'main') == BranchStatus.IN_REVIEW


def test_classification_is_deterministic():
    b = branch(behind_by=1)
    prs = [pr(branch_id=1)]

    results = {classify_branch_status(b, prs, 'main') for _ in range(5)}
    assert results == {BranchStatus.NEEDS_UPDATE}
