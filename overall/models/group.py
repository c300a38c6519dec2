"""Group models - named collections of repositories for display."""
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, UTCDateTime, utcnow


class Group(Base):
    """A display group. Names are not unique."""
    __tablename__ = 'groups'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    display_order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    memberships = relationship("RepoGroup", back_populates="group", cascade="all, delete-orphan",
                               passive_deletes=True)

    def __repr__(self):
        return f"<Group(id={self.id}, name='{self.name}', order={self.display_order})>"


class RepoGroup(Base):
    """Membership of a repository in a group (at most one per repository)."""
    __tablename__ = 'repo_groups'

    repo_id = Column(String(255), ForeignKey('repositories.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(Integer, ForeignKey('groups.id', ondelete='CASCADE'), primary_key=True, index=True)
    added_at = Column(UTCDateTime, nullable=False, default=utcnow)

    group = relationship("Group", back_populates="memberships")

    def __repr__(self):
        return f"<RepoGroup(repo='{self.repo_id}', group={self.group_id})>"
