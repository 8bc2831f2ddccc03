from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text, UniqueConstraint, Uuid

from models.base import Base


class PreferenceEntry(Base):
    __tablename__ = "preference_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    preference_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("preferences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title_id = Column(Uuid(as_uuid=True), nullable=False)
    rank = Column(Integer, nullable=False)
    title = Column(Text, nullable=False, default="")
    supervisor_name = Column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("preference_id", "rank", name="uq_preference_entries_rank"),
        UniqueConstraint("preference_id", "title_id", name="uq_preference_entries_title"),
        CheckConstraint("rank >= 1", name="ck_preference_entries_rank"),
    )
