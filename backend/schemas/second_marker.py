from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


class SecondMarkerAssignmentOut(BaseModel):
    student_id: uuid.UUID
    student_name: str
    student_username: str
    title: str
    supervisor_id: uuid.UUID | None = None
    supervisor_name: str | None = None
    second_marker_id: uuid.UUID | None = None
    second_marker_name: str

    model_config = ConfigDict(from_attributes=True)


class SupervisorPairStatsOut(BaseModel):
    supervisor_id: uuid.UUID
    supervisor_name: str
    supervision_count: int
    second_marking_count: int
    unique_pairs: int
    pairs: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SecondMarkerStatistics(BaseModel):
    total_assignments: int
    unassigned: int
    supervisor_pair_stats: list[SupervisorPairStatsOut] = Field(default_factory=list)


class SecondMarkerResponse(BaseModel):
    assignments: list[SecondMarkerAssignmentOut] = Field(default_factory=list)
    statistics: SecondMarkerStatistics
