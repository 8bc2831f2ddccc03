from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.preference import Preference
from models.title import Title
from models.user import User
from solver.types import (
    UNKNOWN,
    AllocationSnapshot,
    ApprovedCustomTitle,
    CustomTitle,
    NoCustomTitle,
    PendingCustomTitle,
    PreferenceEntry,
    RejectedCustomTitle,
    StudentId,
    StudentPreferences,
    StudentRecord,
    SupervisorId,
    SupervisorRecord,
    TitleId,
    TitleRecord,
)


logger = logging.getLogger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def custom_title_from_row(pref: Preference) -> CustomTitle:
    title = (pref.custom_title or "").strip()
    if not title:
        return NoCustomTitle()

    common = {
        "title": title,
        "supervisor_name": pref.custom_supervisor_name,
        "supervisor_username": pref.custom_supervisor_username,
    }
    status = pref.custom_status or "pending"
    if status == "approved":
        return ApprovedCustomTitle(
            **common,
            approved_supervisor_id=(
                SupervisorId(pref.custom_approved_supervisor_id)
                if pref.custom_approved_supervisor_id is not None
                else None
            ),
        )
    if status == "rejected":
        return RejectedCustomTitle(**common, reason=pref.custom_rejected_reason)
    return PendingCustomTitle(**common)


def preferences_from_rows(rows, students: dict) -> list[StudentPreferences]:
    out: list[StudentPreferences] = []
    for pref in rows:
        student = students.get(pref.student_id)
        if student is None:
            logger.warning("Preference %s references unknown student %s", pref.id, pref.student_id)
        out.append(
            StudentPreferences(
                student_id=StudentId(pref.student_id),
                entries=tuple(
                    PreferenceEntry(
                        title_id=TitleId(e.title_id),
                        rank=int(e.rank),
                        title=e.title or "",
                        supervisor_name=e.supervisor_name or "",
                    )
                    for e in pref.entries
                ),
                submitted_at=as_utc(pref.submitted_at),
                submission_seq=pref.submission_seq,
                student_name=student.name if student is not None else UNKNOWN,
                student_username=student.username if student is not None else UNKNOWN,
                custom_title=custom_title_from_row(pref),
            )
        )
    return out


def load_allocation_snapshot(db: Session) -> AllocationSnapshot:
    """Read everything an allocation run needs in one go."""

    student_rows = db.execute(select(User).where(User.role == "student").order_by(User.name, User.id)).scalars().all()
    supervisor_rows = (
        db.execute(select(User).where(User.role == "supervisor").order_by(User.name, User.id)).scalars().all()
    )
    title_rows = (
        db.execute(select(Title).where(Title.status == "approved").order_by(Title.created_at, Title.id)).scalars().all()
    )
    pref_rows = db.execute(select(Preference).order_by(Preference.submission_seq)).scalars().all()

    students_by_id = {s.id: s for s in student_rows}
    supervisor_names = {s.id: s.name for s in supervisor_rows}

    titles = tuple(
        TitleRecord(
            id=TitleId(t.id),
            title=t.title,
            supervisor_id=SupervisorId(t.supervisor_id) if t.supervisor_id is not None else None,
            supervisor_name=t.supervisor_name or supervisor_names.get(t.supervisor_id) or UNKNOWN,
        )
        for t in title_rows
    )

    return AllocationSnapshot(
        preferences=tuple(preferences_from_rows(pref_rows, students_by_id)),
        titles=titles,
        students=tuple(StudentRecord(id=StudentId(s.id), name=s.name, username=s.username) for s in student_rows),
        supervisors=tuple(
            SupervisorRecord(
                id=SupervisorId(s.id),
                name=s.name,
                username=s.username,
                capacity=int(s.capacity or 0),
            )
            for s in supervisor_rows
        ),
    )
