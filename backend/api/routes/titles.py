from __future__ import annotations

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.title import TitleCreate, TitleOut, TitleStatusUpdate, TitleUpdate
from services.title_service import (
    TitleError,
    create_title,
    delete_title,
    list_titles,
    set_title_status,
    update_title,
)


router = APIRouter()


@router.get("/", response_model=list[TitleOut])
def list_catalog(
    role: Literal["student", "supervisor", "admin"] | None = Query(default=None),
    user_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[TitleOut]:
    try:
        return list_titles(db, role=role, user_id=user_id)
    except TitleError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("/", response_model=TitleOut, status_code=201)
def create(payload: TitleCreate, db: Session = Depends(get_db)) -> TitleOut:
    try:
        return create_title(
            db,
            title=payload.title,
            description=payload.description,
            supervisor_id=payload.supervisor_id,
        )
    except TitleError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.put("/{title_id}", response_model=TitleOut)
def update(
    title_id: uuid.UUID,
    payload: TitleUpdate,
    supervisor_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
) -> TitleOut:
    try:
        return update_title(
            db,
            title_id,
            title=payload.title,
            description=payload.description,
            acting_supervisor_id=supervisor_id,
        )
    except TitleError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.delete("/{title_id}")
def delete(
    title_id: uuid.UUID,
    supervisor_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
) -> dict:
    try:
        delete_title(db, title_id, acting_supervisor_id=supervisor_id)
    except TitleError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return {"ok": True}


@router.patch("/{title_id}/status", response_model=TitleOut)
def update_status(title_id: uuid.UUID, payload: TitleStatusUpdate, db: Session = Depends(get_db)) -> TitleOut:
    try:
        return set_title_status(db, title_id, payload.status)
    except TitleError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
