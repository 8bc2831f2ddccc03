from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


class Allocation(Base):
    __tablename__ = "allocations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    student_id = Column(Uuid(as_uuid=True), nullable=False, unique=True)
    student_name = Column(Text, nullable=False, default="")
    student_username = Column(Text, nullable=False, default="")

    # Synthetic for custom titles, so not a foreign key.
    title_id = Column(Uuid(as_uuid=True), nullable=False, unique=True)
    title = Column(Text, nullable=False)

    supervisor_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    supervisor_name = Column(Text, nullable=True)

    is_custom_title = Column(Boolean, nullable=False, default=False)
    preference_rank = Column(Integer, nullable=True)
    allocated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
