"""Branch model - a remote branch and its divergence from the default branch."""
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from .base import Base, NamedEnum, UTCDateTime


class BranchStatus(enum.Enum):
    """Review state of a branch, derived from its pull requests"""
    READY_FOR_PR = "ReadyForPR"
    IN_REVIEW = "InReview"
    READY_TO_MERGE = "ReadyToMerge"  # not produced yet
    NEEDS_UPDATE = "NeedsUpdate"
    HAS_CONFLICTS = "HasConflicts"  # not produced yet


class Branch(Base):
    """
    Represents a branch of a repository.

    The full set of branches for a repository is replaced on every sync, so
    ids are only stable between two syncs.
    """
    __tablename__ = 'branches'

    id = Column(Integer, primary_key=True, autoincrement=True)
    repo_id = Column(String(255), ForeignKey('repositories.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sha = Column(String(64), nullable=False)

    # Divergence from the repository's default branch
    ahead_by = Column(Integer, nullable=False, default=0)
    behind_by = Column(Integer, nullable=False, default=0)

    # Cached classifier output, recomputed every sync
    status = Column(NamedEnum(BranchStatus, BranchStatus.READY_FOR_PR), nullable=False,
                    default=BranchStatus.READY_FOR_PR)

    last_commit_date = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint('repo_id', 'name', name='uq_branches_repo_name'),
    )

    def __repr__(self):
        return f"<Branch(repo='{self.repo_id}', name='{self.name}', +{self.ahead_by}/-{self.behind_by})>"
