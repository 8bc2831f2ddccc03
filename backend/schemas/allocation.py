from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AllocationOut(BaseModel):
    id: uuid.UUID
    run_id: uuid.UUID | None = None
    student_id: uuid.UUID
    student_name: str
    student_username: str
    title_id: uuid.UUID
    title: str
    supervisor_id: uuid.UUID | None = None
    supervisor_name: str | None = None
    is_custom_title: bool
    preference_rank: int | None = None
    allocated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AllocationResultItem(BaseModel):
    student_id: uuid.UUID
    student_name: str
    student_username: str
    title_id: uuid.UUID
    title: str
    supervisor_id: uuid.UUID | None = None
    supervisor_name: str | None = None
    is_custom_title: bool = False
    preference_rank: int | None = None

    model_config = ConfigDict(from_attributes=True)


class SupervisorUtilization(BaseModel):
    supervisor_id: uuid.UUID
    supervisor_name: str
    current: int
    capacity: int
    remaining: int
    is_over_capacity: bool


class AllocationStatistics(BaseModel):
    total_students: int
    students_with_approved_custom_titles: int
    students_with_regular_allocations: int
    unallocated_students: int
    preference_distribution: dict[str, int] = Field(default_factory=dict)

    students_with_preferences: int = 0
    students_without_preferences: int = 0
    students_with_pending_custom_titles: int = 0
    students_with_rejected_custom_titles: int = 0
    unmatched_student_ids: list[uuid.UUID] = Field(default_factory=list)
    supervisor_utilization: list[SupervisorUtilization] = Field(default_factory=list)


class RunAllocationResponse(BaseModel):
    run_id: uuid.UUID
    status: Literal["COMPLETED"] = "COMPLETED"
    allocations: list[AllocationResultItem] = Field(default_factory=list)
    statistics: AllocationStatistics


class AllocationSummary(BaseModel):
    total_students: int
    allocated_students: int
    unallocated_students: int
    custom_titles: int


class AllocationRunOut(BaseModel):
    id: uuid.UUID
    created_at: datetime
    status: Literal["COMPLETED", "NO_INPUT"]
    statistics: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicationOut(BaseModel):
    allocation_published: bool
    published_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
