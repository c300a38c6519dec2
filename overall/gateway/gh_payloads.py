"""Pydantic models for JSON printed by the gh CLI."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GhPayload(BaseModel):
    """Base for gh payloads: extra fields are ignored, aliases match gh's keys."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)


# ============================================================================
# gh repo list --json
# ============================================================================

class GhOwner(GhPayload):
    login: str


class GhLanguage(GhPayload):
    name: str


class GhBranchRef(GhPayload):
    name: str


class GhRepo(GhPayload):
    """One entry of `gh repo list --json ...`."""

    name: str
    owner: GhOwner
    pushed_at: Optional[datetime] = Field(default=None, alias='pushedAt')
    """Null for repositories that were never pushed to"""

    created_at: datetime = Field(alias='createdAt')
    updated_at: datetime = Field(alias='updatedAt')
    primary_language: Optional[GhLanguage] = Field(default=None, alias='primaryLanguage')
    description: Optional[str] = None
    is_fork: bool = Field(default=False, alias='isFork')
    default_branch_ref: Optional[GhBranchRef] = Field(default=None, alias='defaultBranchRef')
    """Null for empty repositories"""


# ============================================================================
# gh api repos/{id}/...
# ============================================================================

class GhRepoDetail(GhPayload):
    default_branch: str


class GhCommitRef(GhPayload):
    sha: str


class GhBranch(GhPayload):
    """One entry of `gh api repos/{id}/branches`."""

    name: str
    commit: GhCommitRef


class GhSignature(GhPayload):
    name: str
    email: str
    date: datetime


class GhCommitData(GhPayload):
    message: str
    author: GhSignature
    committer: GhSignature


class GhCommit(GhPayload):
    """Response of `gh api repos/{id}/commits/{sha}`, also one entry of the commit list."""

    sha: str
    commit: GhCommitData


class GhComparison(GhPayload):
    """Response of `gh api repos/{id}/compare/{base}...{head}`, counted from head's side."""

    ahead_by: int
    behind_by: int


# ============================================================================
# gh pr list --json
# ============================================================================

class GhPullRequest(GhPayload):
    number: int
    state: str
    """OPEN, CLOSED or MERGED"""

    title: str
    created_at: datetime = Field(alias='createdAt')
    updated_at: datetime = Field(alias='updatedAt')
    head_ref_name: Optional[str] = Field(default=None, alias='headRefName')
