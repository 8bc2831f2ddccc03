from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.capacity import CapacityUpdate, SupervisorCapacityOut
from services.capacity_service import update_supervisor_capacity
from services.preference_service import PreferenceError


router = APIRouter()


@router.put("/{user_id}/capacity", response_model=SupervisorCapacityOut)
def set_capacity(user_id: uuid.UUID, payload: CapacityUpdate, db: Session = Depends(get_db)) -> SupervisorCapacityOut:
    try:
        return update_supervisor_capacity(db, user_id, payload.capacity)
    except PreferenceError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
