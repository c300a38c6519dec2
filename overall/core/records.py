"""
Plain records exchanged between the gateways, the orchestrator and the store.

The gateways produce these; the store turns them into rows. Keeping them
separate from the ORM models means a gateway never holds a database object.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from overall.models import BranchStatus, PullRequestState


@dataclass
class RepositoryInfo:
    """Repository metadata as listed by the code host."""
    owner: str
    name: str
    pushed_at: datetime
    created_at: datetime
    updated_at: datetime
    language: Optional[str] = None
    description: Optional[str] = None
    default_branch: str = 'main'
    is_fork: bool = False
    priority: float = 0.0

    @property
    def id(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class BranchInfo:
    """A remote branch with its divergence from the default branch."""
    name: str
    sha: str
    last_commit_date: datetime
    ahead_by: int = 0
    behind_by: int = 0
    status: BranchStatus = BranchStatus.READY_FOR_PR


@dataclass
class PullRequestInfo:
    """
    A pull request as reported by the code host.

    branch_id is left unset by gateways; the orchestrator fills it in once the
    branch rows for the same sync have ids.
    """
    number: int
    state: PullRequestState
    title: str
    created_at: datetime
    updated_at: datetime
    head_branch: Optional[str] = None
    branch_id: Optional[int] = None


@dataclass
class CommitInfo:
    sha: str
    message: str
    author_name: str
    author_email: str
    authored_date: datetime
    committer_name: str
    committer_email: str
    committed_date: datetime


@dataclass
class LocalStatusInfo:
    """Working-copy status of one local checkout."""
    repo_id: str
    local_path: str
    last_checked: datetime
    current_branch: Optional[str] = None
    uncommitted_files: int = 0
    unpushed_commits: int = 0
    behind_commits: int = 0

    @property
    def is_dirty(self) -> bool:
        return self.uncommitted_files > 0 or self.unpushed_commits > 0


@dataclass
class CreatedPullRequest:
    """Record of a create_pull_request call, kept by the fake gateway."""
    repo_id: str
    branch_name: str
    title: str
    body: str
    url: str = field(default='')
