"""Database models for the game."""
from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from describo.models.base import Base, TimestampMixin


class StorageEntry(Base, TimestampMixin):
    """Durable key-value entry, e.g. the solved list or the settings blob."""

    __tablename__ = "storage_entries"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_storage_namespace_key"),)

    id = Column(Integer, primary_key=True)
    namespace = Column(String, nullable=False, index=True)  # e.g. "chat:12345"
    key = Column(String, nullable=False)  # "solved" or "settings"
    value = Column(Text, nullable=False)  # JSON text
