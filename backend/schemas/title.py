from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TitleCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    supervisor_id: uuid.UUID


class TitleUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None


class TitleStatusUpdate(BaseModel):
    status: str


class TitleOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    supervisor_id: uuid.UUID
    supervisor_name: str | None = None
    status: Literal["pending", "approved", "rejected"]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
