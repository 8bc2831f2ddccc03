"""Supervisor capacity edits and the approved custom titles those capacities no longer fit."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.preference import Preference
from models.user import User
from services.preference_service import (
    PreferenceError,
    approve_custom_title,
    get_custom_title,
    reject_custom_title,
    supervisor_load,
)


logger = logging.getLogger(__name__)

CAPACITY_REJECTION_REASON = "Capacity constraints"
CONFLICT_CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


@dataclass(frozen=True)
class CapacityConflict:
    student_id: uuid.UUID
    student_name: str
    student_username: str
    custom_title: str
    preferred_supervisor_id: uuid.UUID
    preferred_supervisor_name: str
    supervisor_capacity: int
    supervisor_current: int
    conflict_type: str = CONFLICT_CAPACITY_EXCEEDED


def _parse_capacity(value: Any) -> int:
    if isinstance(value, bool):
        raise PreferenceError(400, "INVALID_CAPACITY")
    if isinstance(value, int):
        capacity = value
    elif isinstance(value, str) and value.strip().isdigit():
        capacity = int(value.strip())
    else:
        raise PreferenceError(400, "INVALID_CAPACITY")
    if capacity < 0:
        raise PreferenceError(400, "INVALID_CAPACITY")
    return capacity


def update_supervisor_capacity(db: Session, user_id: uuid.UUID, capacity: Any) -> User:
    value = _parse_capacity(capacity)

    user = db.get(User, user_id)
    if user is None:
        raise PreferenceError(404, "USER_NOT_FOUND")
    if user.role != "supervisor":
        raise PreferenceError(400, "NOT_A_SUPERVISOR")

    user.capacity = value
    db.commit()
    db.refresh(user)

    logger.info("Capacity of supervisor %s set to %d", user.name, value)
    return user


def _preferred_supervisor(db: Session, pref: Preference) -> User | None:
    if pref.custom_approved_supervisor_id is not None:
        return db.get(User, pref.custom_approved_supervisor_id)

    supervisors = db.execute(select(User).where(User.role == "supervisor")).scalars().all()
    username = (pref.custom_supervisor_username or "").strip().lower()
    if username:
        for s in supervisors:
            if (s.username or "").strip().lower() == username:
                return s
    name = (pref.custom_supervisor_name or "").strip()
    if name:
        for s in supervisors:
            if s.name == name:
                return s
    return None


def list_capacity_conflicts(db: Session) -> list[CapacityConflict]:
    """Approved custom titles whose supervisor is already full without this student.

    A student's own committed allocation is not counted against them, so a supervisor
    filled exactly to capacity by a previous run is not reported.
    """

    q = (
        select(Preference, User)
        .join(User, User.id == Preference.student_id)
        .where(Preference.custom_status == "approved", Preference.custom_title.is_not(None))
        .order_by(Preference.submission_seq.asc())
    )

    conflicts: list[CapacityConflict] = []
    for pref, student in db.execute(q).all():
        supervisor = _preferred_supervisor(db, pref)
        if supervisor is None:
            continue

        current = supervisor_load(db, supervisor.id, exclude_student_id=student.id)
        capacity = int(supervisor.capacity or 0)
        if current < capacity:
            continue

        conflicts.append(
            CapacityConflict(
                student_id=student.id,
                student_name=student.name,
                student_username=student.username,
                custom_title=pref.custom_title,
                preferred_supervisor_id=supervisor.id,
                preferred_supervisor_name=supervisor.name,
                supervisor_capacity=capacity,
                supervisor_current=current,
            )
        )

    if conflicts:
        logger.info("Found %d custom title capacity conflicts", len(conflicts))
    return conflicts


def resolve_capacity_conflict(
    db: Session,
    student_id: uuid.UUID,
    action: str,
    *,
    new_supervisor_id: uuid.UUID | None = None,
    reject_reason: str | None = None,
) -> Preference:
    if action not in ("reassign", "reject"):
        raise PreferenceError(400, "INVALID_ACTION")

    get_custom_title(db, student_id)

    if action == "reject":
        return reject_custom_title(db, student_id, reject_reason, default_reason=CAPACITY_REJECTION_REASON)

    if new_supervisor_id is None:
        raise PreferenceError(400, "NEW_SUPERVISOR_REQUIRED")
    return approve_custom_title(db, student_id, new_supervisor_id)
