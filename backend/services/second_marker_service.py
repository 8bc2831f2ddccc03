from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.allocation import Allocation
from models.user import User
from services.run_lock import RunLock, allocation_run_lock
from solver.second_marker import SecondMarkerOutcome, assign_second_markers
from solver.types import (
    UNKNOWN,
    AllocationRecord,
    StudentId,
    SupervisorId,
    SupervisorRecord,
    TitleId,
)


def _committed_allocations(db: Session) -> list[AllocationRecord]:
    rows = db.execute(select(Allocation).order_by(Allocation.student_name, Allocation.student_id)).scalars().all()
    return [
        AllocationRecord(
            student_id=StudentId(a.student_id),
            student_name=a.student_name or UNKNOWN,
            student_username=a.student_username or UNKNOWN,
            title_id=TitleId(a.title_id),
            title=a.title,
            supervisor_id=SupervisorId(a.supervisor_id) if a.supervisor_id is not None else None,
            supervisor_name=a.supervisor_name,
            is_custom_title=bool(a.is_custom_title),
            preference_rank=a.preference_rank,
        )
        for a in rows
    ]


def _supervisor_roster(db: Session) -> list[SupervisorRecord]:
    rows = db.execute(select(User).where(User.role == "supervisor").order_by(User.name, User.id)).scalars().all()
    return [
        SupervisorRecord(id=SupervisorId(s.id), name=s.name, username=s.username, capacity=int(s.capacity or 0))
        for s in rows
    ]


def compute_second_markers(db: Session, *, lock: RunLock = allocation_run_lock) -> SecondMarkerOutcome:
    """Assign second markers over the committed allocations. Nothing is persisted."""

    lock.ensure_idle()
    return assign_second_markers(_committed_allocations(db), _supervisor_roster(db))
