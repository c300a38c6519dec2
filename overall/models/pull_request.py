import enum
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from .base import Base, NamedEnum, UTCDateTime


class PullRequestState(enum.Enum):
    """State of a pull request on the code host"""
    OPEN = "Open"
    CLOSED = "Closed"
    MERGED = "Merged"


class PullRequest(Base):
    """
    Represents a pull request as last fetched from the code host.
    Replaced wholesale per repository on every sync.
    """
    __tablename__ = 'pull_requests'

    id = Column(Integer, primary_key=True, autoincrement=True)
    repo_id = Column(String(255), ForeignKey('repositories.id', ondelete='CASCADE'), nullable=False, index=True)

    # Linked branch, resolved from head_branch during sync
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)

    # Pull request number within the repository
    number = Column(Integer, nullable=False)

    state = Column(NamedEnum(PullRequestState, PullRequestState.CLOSED), nullable=False)
    title = Column(String(500), nullable=False)
    head_branch = Column(String(255), nullable=True)  # Source branch (e.g., 'feature-xyz')

    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint('repo_id', 'number', name='uq_pull_requests_repo_number'),
    )

    def __repr__(self):
        return f"<PullRequest(#{self.number}, '{self.title}', {self.state.value})>"
