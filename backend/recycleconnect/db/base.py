"""
Declarative base and shared columns for all models.
"""
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base
from recycleconnect.core.utils import utcnow

Base = declarative_base()


class BaseModel(Base):
    """Abstract model with an autoincrement id and timestamps."""
    __abstract__ = True
    # Never hand out the id of a deleted row again on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
