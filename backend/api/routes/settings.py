from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.settings import CanEditPreferencesOut, PreferenceDeadlineIn, SystemSettingsOut
from services.settings_service import deadline_passed, get_system_settings, set_preference_deadline


router = APIRouter()


@router.get("/", response_model=SystemSettingsOut)
def get_settings(db: Session = Depends(get_db)) -> SystemSettingsOut:
    row = get_system_settings(db)
    db.commit()
    return row


@router.post("/preference-deadline", response_model=SystemSettingsOut)
def update_preference_deadline(payload: PreferenceDeadlineIn, db: Session = Depends(get_db)) -> SystemSettingsOut:
    return set_preference_deadline(db, payload.deadline)


@router.get("/can-edit-preferences", response_model=CanEditPreferencesOut)
def can_edit_preferences(db: Session = Depends(get_db)) -> CanEditPreferencesOut:
    row = get_system_settings(db)
    can_edit = not deadline_passed(row)
    return CanEditPreferencesOut(
        can_edit=can_edit,
        allocation_completed=bool(row.allocation_completed),
        preference_deadline=row.preference_deadline,
        message=(
            "You can edit your preferences" if can_edit else "The deadline for editing preferences has passed"
        ),
    )
