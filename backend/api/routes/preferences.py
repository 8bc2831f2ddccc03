from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.database import get_db
from models.preference import Preference
from models.user import User
from schemas.preference import CustomTitleOut, PreferenceEntryOut, PreferenceOut, PreferenceSubmit
from services.preference_service import (
    CustomTitleProposal,
    PreferenceError,
    RankedChoice,
    get_preference,
    list_preferences,
    submit_preferences,
)


router = APIRouter()


def custom_title_out(pref: Preference) -> CustomTitleOut | None:
    if not pref.custom_title:
        return None
    return CustomTitleOut(
        title=pref.custom_title,
        supervisor_name=pref.custom_supervisor_name,
        supervisor_username=pref.custom_supervisor_username,
        status=pref.custom_status or "pending",
        approved_supervisor_id=pref.custom_approved_supervisor_id,
        approved_at=pref.custom_approved_at,
        rejected_reason=pref.custom_rejected_reason,
    )


def _to_out(pref: Preference, student: User | None = None) -> PreferenceOut:
    return PreferenceOut(
        id=pref.id,
        student_id=pref.student_id,
        student_name=student.name if student is not None else None,
        student_username=student.username if student is not None else None,
        submitted_at=pref.submitted_at,
        submission_seq=pref.submission_seq,
        updated_at=pref.updated_at,
        preferences=[PreferenceEntryOut.model_validate(e) for e in pref.entries],
        custom_title=custom_title_out(pref),
    )


@router.get("/", response_model=list[PreferenceOut])
def list_all_preferences(db: Session = Depends(get_db)) -> list[PreferenceOut]:
    return [_to_out(p, u) for p, u in list_preferences(db)]


@router.get("/{student_id}", response_model=PreferenceOut)
def get_student_preferences(student_id: uuid.UUID, db: Session = Depends(get_db)) -> PreferenceOut:
    pref = get_preference(db, student_id)
    if pref is None:
        raise HTTPException(status_code=404, detail="PREFERENCES_NOT_FOUND")
    return _to_out(pref, db.get(User, student_id))


@router.post("/{student_id}", response_model=PreferenceOut)
def submit_student_preferences(
    student_id: uuid.UUID,
    payload: PreferenceSubmit,
    db: Session = Depends(get_db),
) -> PreferenceOut:
    proposal = None
    if payload.custom_title is not None:
        proposal = CustomTitleProposal(**payload.custom_title.model_dump())

    try:
        pref = submit_preferences(
            db,
            student_id,
            [RankedChoice(title_id=c.title_id, rank=c.rank) for c in payload.preferences],
            custom_title=proposal,
        )
    except PreferenceError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)

    return _to_out(pref, db.get(User, student_id))
