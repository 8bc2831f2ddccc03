from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.routes.preferences import custom_title_out
from core.database import get_db
from models.preference import Preference
from models.user import User
from schemas.preference import CustomTitleApprove, CustomTitleReject, CustomTitleRequestOut
from services.preference_service import (
    PreferenceError,
    approve_custom_title,
    list_custom_titles,
    reject_custom_title,
)


router = APIRouter()


def custom_title_request_out(pref: Preference, student: User | None) -> CustomTitleRequestOut:
    base = custom_title_out(pref)
    return CustomTitleRequestOut(
        **base.model_dump(),
        student_id=pref.student_id,
        student_name=student.name if student is not None else None,
        student_username=student.username if student is not None else None,
    )


@router.get("/", response_model=list[CustomTitleRequestOut])
def list_requests(db: Session = Depends(get_db)) -> list[CustomTitleRequestOut]:
    return [custom_title_request_out(p, u) for p, u in list_custom_titles(db)]


@router.post("/{student_id}/approve", response_model=CustomTitleRequestOut)
def approve(student_id: uuid.UUID, payload: CustomTitleApprove, db: Session = Depends(get_db)) -> CustomTitleRequestOut:
    try:
        pref = approve_custom_title(db, student_id, payload.supervisor_id)
    except PreferenceError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return custom_title_request_out(pref, db.get(User, student_id))


@router.post("/{student_id}/reject", response_model=CustomTitleRequestOut)
def reject(
    student_id: uuid.UUID,
    payload: CustomTitleReject | None = None,
    db: Session = Depends(get_db),
) -> CustomTitleRequestOut:
    try:
        pref = reject_custom_title(db, student_id, payload.reason if payload is not None else None)
    except PreferenceError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return custom_title_request_out(pref, db.get(User, student_id))
