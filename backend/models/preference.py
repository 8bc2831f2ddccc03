from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


CUSTOM_TITLE_STATUS = Enum(
    "pending",
    "approved",
    "rejected",
    name="custom_title_status",
    native_enum=False,
)


class Preference(Base):
    """A student's preference submission, one row per student."""

    __tablename__ = "preferences"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # First submission time; resubmissions keep it. submission_seq breaks exact ties.
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    submission_seq = Column(Integer, nullable=False, unique=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Optional custom title proposal (all null when absent).
    custom_title = Column(Text, nullable=True)
    custom_supervisor_name = Column(Text, nullable=True)
    custom_supervisor_username = Column(Text, nullable=True)
    custom_status = Column(CUSTOM_TITLE_STATUS, nullable=True)
    custom_approved_supervisor_id = Column(Uuid(as_uuid=True), nullable=True)
    custom_approved_at = Column(DateTime(timezone=True), nullable=True)
    custom_rejected_reason = Column(Text, nullable=True)

    entries = relationship(
        "PreferenceEntry",
        cascade="all, delete-orphan",
        order_by="PreferenceEntry.rank",
        lazy="selectin",
    )
