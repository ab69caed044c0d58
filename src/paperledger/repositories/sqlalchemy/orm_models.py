"""SQLAlchemy ORM model definitions."""

from sqlalchemy import Column, String, DateTime, Text

from paperledger.core.timezone import now_eastern
from paperledger.repositories.sqlalchemy.database import Base


class KeyValueEntryORM(Base):
    """SQLAlchemy model for one persisted key of a profile."""

    __tablename__ = "kv_entries"

    profile_id = Column(String(64), primary_key=True)
    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at_est = Column(DateTime, nullable=False, default=now_eastern)
