from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PreferenceChoiceIn(BaseModel):
    title_id: uuid.UUID
    rank: int = Field(ge=1)


class CustomTitleIn(BaseModel):
    title: str = Field(min_length=1)
    supervisor_name: str | None = None
    supervisor_username: str | None = None


class PreferenceSubmit(BaseModel):
    preferences: list[PreferenceChoiceIn] = Field(default_factory=list)
    custom_title: CustomTitleIn | None = None


class PreferenceEntryOut(BaseModel):
    title_id: uuid.UUID
    rank: int
    title: str
    supervisor_name: str

    model_config = ConfigDict(from_attributes=True)


class CustomTitleOut(BaseModel):
    title: str
    supervisor_name: str | None = None
    supervisor_username: str | None = None
    status: Literal["pending", "approved", "rejected"]
    approved_supervisor_id: uuid.UUID | None = None
    approved_at: datetime | None = None
    rejected_reason: str | None = None


class PreferenceOut(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    student_name: str | None = None
    student_username: str | None = None
    submitted_at: datetime
    submission_seq: int
    updated_at: datetime | None = None
    preferences: list[PreferenceEntryOut] = Field(default_factory=list)
    custom_title: CustomTitleOut | None = None


class CustomTitleRequestOut(CustomTitleOut):
    student_id: uuid.UUID
    student_name: str | None = None
    student_username: str | None = None


class CustomTitleApprove(BaseModel):
    supervisor_id: uuid.UUID


class CustomTitleReject(BaseModel):
    reason: str | None = None
