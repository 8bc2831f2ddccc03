from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer
from sqlalchemy.sql import func

from models.base import Base


class SystemSettings(Base):
    """Singleton row (id=1) holding deadline and publication state."""

    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=1)
    preference_deadline = Column(DateTime(timezone=True), nullable=True)
    allocation_completed = Column(Boolean, nullable=False, default=False)
    allocation_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
