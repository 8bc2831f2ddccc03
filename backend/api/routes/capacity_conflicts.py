from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.routes.custom_titles import custom_title_request_out
from core.database import get_db
from models.user import User
from schemas.capacity import CapacityConflictOut, CapacityConflictResolve
from schemas.preference import CustomTitleRequestOut
from services.capacity_service import list_capacity_conflicts, resolve_capacity_conflict
from services.preference_service import PreferenceError


router = APIRouter()


@router.get("/conflicts", response_model=list[CapacityConflictOut])
def conflicts(db: Session = Depends(get_db)) -> list[CapacityConflictOut]:
    return [CapacityConflictOut(**vars(c)) for c in list_capacity_conflicts(db)]


@router.post("/resolve", response_model=CustomTitleRequestOut)
def resolve(payload: CapacityConflictResolve, db: Session = Depends(get_db)) -> CustomTitleRequestOut:
    try:
        pref = resolve_capacity_conflict(
            db,
            payload.student_id,
            payload.action,
            new_supervisor_id=payload.new_supervisor_id,
            reject_reason=payload.reject_reason,
        )
    except PreferenceError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return custom_title_request_out(pref, db.get(User, payload.student_id))
