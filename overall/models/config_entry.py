from sqlalchemy import Column, String, Text
from .base import Base


class ConfigEntry(Base):
    """Small persisted key/value setting (e.g. the last sync time)."""
    __tablename__ = 'config'

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<ConfigEntry(key='{self.key}')>"
