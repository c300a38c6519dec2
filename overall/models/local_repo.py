"""Local checkout models - scanned roots and per-repository working-copy status."""
from sqlalchemy import Column, Integer, String, Boolean
from .base import Base, UTCDateTime, utcnow


class LocalRepoRoot(Base):
    """A directory whose immediate subdirectories are scanned for checkouts."""
    __tablename__ = 'local_repo_roots'

    id = Column(Integer, primary_key=True, autoincrement=True)
    path = Column(String(1024), unique=True, nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<LocalRepoRoot(id={self.id}, path='{self.path}', enabled={self.enabled})>"


class LocalRepoStatus(Base):
    """Most recent scan result for one local checkout, keyed by repository id."""
    __tablename__ = 'local_repo_status'

    repo_id = Column(String(255), primary_key=True)  # not a foreign key: checkouts may be untracked remotely
    local_path = Column(String(1024), nullable=False)
    current_branch = Column(String(255), nullable=True)  # None for a detached HEAD
    uncommitted_files = Column(Integer, nullable=False, default=0)
    unpushed_commits = Column(Integer, nullable=False, default=0)
    behind_commits = Column(Integer, nullable=False, default=0)
    is_dirty = Column(Boolean, nullable=False, default=False)
    last_checked = Column(UTCDateTime, nullable=False)

    def __repr__(self):
        return f"<LocalRepoStatus(repo='{self.repo_id}', dirty={self.is_dirty})>"
