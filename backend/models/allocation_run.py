from __future__ import annotations

import uuid

from sqlalchemy import JSON, Column, DateTime, Enum, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


RUN_STATUS = Enum(
    "COMPLETED",
    "NO_INPUT",
    name="allocation_run_status",
    native_enum=False,
)


class AllocationRun(Base):
    __tablename__ = "allocation_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(RUN_STATUS, nullable=False, default="COMPLETED")
    statistics = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
