"""
Builders for gateway records used across the test suite.
"""
import hashlib
from datetime import datetime, timedelta, timezone

from overall.core.records import RepositoryInfo, BranchInfo, PullRequestInfo, CommitInfo, LocalStatusInfo
from overall.models import PullRequestState

T0 = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def at(hours: int) -> datetime:
    """T0 shifted by a number of hours"""
    return T0 + timedelta(hours=hours)


def make_repo(owner='acme', name='widgets', pushed_at=T0, **kwargs) -> RepositoryInfo:
    kwargs.setdefault('created_at', T0 - timedelta(days=30))
    kwargs.setdefault('updated_at', pushed_at)
    kwargs.setdefault('language', 'Python')
    return RepositoryInfo(owner=owner, name=name, pushed_at=pushed_at, **kwargs)


def make_branch(name, ahead_by=0, behind_by=0, sha=None, last_commit_date=T0) -> BranchInfo:
    return BranchInfo(
        name=name,
        sha=sha or hashlib.sha1(name.encode()).hexdigest(),
        last_commit_date=last_commit_date,
        ahead_by=ahead_by,
        behind_by=behind_by,
    )


def make_pr(number, state=PullRequestState.OPEN, head_branch=None, title=None,
            created_at=T0, updated_at=T0) -> PullRequestInfo:
    return PullRequestInfo(
        number=number,
        state=state,
        title=title or f"PR #{number}",
        created_at=created_at,
        updated_at=updated_at,
        head_branch=head_branch,
    )


def make_commit(sha, message='Update widgets', committed_date=T0) -> CommitInfo:
    return CommitInfo(
        sha=sha,
        message=message,
        author_name='Test User',
        author_email='test@example.com',
        authored_date=committed_date,
        committer_name='Test User',
        committer_email='test@example.com',
        committed_date=committed_date,
    )


def make_local_status(repo_id='acme/widgets', local_path=None, current_branch='main',
                      uncommitted_files=0, unpushed_commits=0, behind_commits=0,
                      last_checked=T0) -> LocalStatusInfo:
    return LocalStatusInfo(
        repo_id=repo_id,
        local_path=local_path or f"/home/dev/src/{repo_id}",
        last_checked=last_checked,
        current_branch=current_branch,
        uncommitted_files=uncommitted_files,
        unpushed_commits=unpushed_commits,
        behind_commits=behind_commits,
    )
