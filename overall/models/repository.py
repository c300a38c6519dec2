"""Repository model - a remote repository tracked by owner/name."""
from sqlalchemy import Column, String, Text, Boolean, Float
from .base import Base, UTCDateTime


class Repository(Base):
    """A repository on the code host, identified by 'owner/name'."""
    __tablename__ = 'repositories'

    id = Column(String(255), primary_key=True)  # e.g., 'acme/widgets'
    owner = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    language = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    default_branch = Column(String(255), nullable=False, default='main')
    pushed_at = Column(UTCDateTime, nullable=False, index=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
    is_fork = Column(Boolean, nullable=False, default=False)

    # Reserved for future ranking; listings sort on it first
    priority = Column(Float, nullable=False, default=0.0, index=True)

    def __repr__(self):
        return f"<Repository(id='{self.id}')>"
