from sqlalchemy import Column, Integer, String, Text, ForeignKey
from .base import Base, UTCDateTime


class Commit(Base):
    """
    A commit on a branch with unmerged work.
    Only fetched for branches ahead of the default branch; display-only.
    """
    __tablename__ = 'commits'

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False, index=True)
    sha = Column(String(64), nullable=False)
    message = Column(Text, nullable=False)

    author_name = Column(String(255), nullable=False)
    author_email = Column(String(255), nullable=False)
    authored_date = Column(UTCDateTime, nullable=False)

    committer_name = Column(String(255), nullable=False)
    committer_email = Column(String(255), nullable=False)
    committed_date = Column(UTCDateTime, nullable=False)

    def __repr__(self):
        return f"<Commit(sha='{self.sha[:8]}...', message='{self.message[:50]}...')>"
