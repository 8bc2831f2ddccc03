from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict


class CapacityUpdate(BaseModel):
    # Checked by the service so that bad values answer 400 like the other capacity errors.
    capacity: Any = None


class SupervisorCapacityOut(BaseModel):
    id: uuid.UUID
    username: str
    name: str
    role: str
    capacity: int

    model_config = ConfigDict(from_attributes=True)


class CapacityConflictOut(BaseModel):
    student_id: uuid.UUID
    student_name: str
    student_username: str
    custom_title: str
    preferred_supervisor_id: uuid.UUID
    preferred_supervisor_name: str
    supervisor_capacity: int
    supervisor_current: int
    conflict_type: str = "CAPACITY_EXCEEDED"


class CapacityConflictResolve(BaseModel):
    student_id: uuid.UUID
    action: str
    new_supervisor_id: uuid.UUID | None = None
    reject_reason: str | None = None
