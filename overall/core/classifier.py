"""
Branch status classification.

Pure functions only: nothing here touches the store or the code host, so the
rules can be exercised with plain row objects.
"""
from typing import Iterable, Optional, Sequence

from overall.models import Branch, BranchStatus, PullRequest, PullRequestState


def find_pull_request_for_branch(branch: Branch, pull_requests: Iterable[PullRequest]) -> Optional[PullRequest]:
    """
    Find the pull request opened from `branch`.

    A pull request linked by branch_id matches on id. An unlinked one matches
    when its head branch name equals the branch name. The first match wins.
    """
    for pr in pull_requests:
        if pr.branch_id is not None:
            if pr.branch_id == branch.id:
                return pr
        elif pr.head_branch is not None and pr.head_branch == branch.name:
            return pr
    return None


def classify_branch_status(branch: Branch, pull_requests: Sequence[PullRequest],
                           default_branch: str = 'main') -> BranchStatus:
    """
    Derive the review status of a branch.

    Args:
        branch: The branch to classify
        pull_requests: Pull requests of the branch's repository
        default_branch: Name of the repository's default branch

    Returns:
        BranchStatus (never ReadyToMerge or HasConflicts for now)
    """
    if branch.name == default_branch:
        return BranchStatus.READY_FOR_PR

    pr = find_pull_request_for_branch(branch, pull_requests)
    if pr is None:
        return BranchStatus.READY_FOR_PR

    if pr.state == PullRequestState.OPEN:
        if branch.behind_by > 0:
            return BranchStatus.NEEDS_UPDATE
        return BranchStatus.IN_REVIEW

    # Merged and closed pull requests leave the branch free for a new one
    return BranchStatus.READY_FOR_PR
