from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SystemSettingsOut(BaseModel):
    preference_deadline: datetime | None = None
    allocation_completed: bool
    allocation_published: bool
    published_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PreferenceDeadlineIn(BaseModel):
    # null clears the deadline
    deadline: datetime | None = None


class CanEditPreferencesOut(BaseModel):
    can_edit: bool
    allocation_completed: bool
    preference_deadline: datetime | None = None
    message: str
