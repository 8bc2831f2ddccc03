from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from models.allocation import Allocation
from models.preference import Preference
from models.preference_entry import PreferenceEntry
from models.title import Title
from models.user import User
from services.settings_service import deadline_passed, get_system_settings


logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"

# A racing first submission can take our sequence number; retry against fresh state.
_SUBMIT_ATTEMPTS = 3


class PreferenceError(Exception):
    """A rejected preference or custom-title request; routes turn it into an HTTP error."""

    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(detail if isinstance(detail, str) else detail.get("code"))
        self.status_code = status_code
        self.detail = detail


@dataclass(frozen=True)
class RankedChoice:
    title_id: uuid.UUID
    rank: int


@dataclass(frozen=True)
class CustomTitleProposal:
    title: str
    supervisor_name: str | None = None
    supervisor_username: str | None = None


def _get_student(db: Session, student_id: uuid.UUID) -> User:
    student = db.get(User, student_id)
    if student is None or student.role != "student":
        raise PreferenceError(404, "STUDENT_NOT_FOUND")
    return student


def get_preference(db: Session, student_id: uuid.UUID) -> Preference | None:
    return db.execute(select(Preference).where(Preference.student_id == student_id)).scalars().first()


def list_preferences(db: Session) -> list[tuple[Preference, User | None]]:
    q = (
        select(Preference, User)
        .join(User, User.id == Preference.student_id, isouter=True)
        .order_by(Preference.submission_seq.asc())
    )
    return [(p, u) for p, u in db.execute(q).all()]


def _validate_choices(db: Session, choices: list[RankedChoice]) -> dict[uuid.UUID, Title]:
    expected = settings.preferences_per_student
    if len(choices) != expected:
        raise PreferenceError(
            400,
            {
                "code": "EXACTLY_5_PREFERENCES_REQUIRED",
                "message": f"Exactly {expected} preferences are required",
                "received": len(choices),
            },
        )

    if sorted(c.rank for c in choices) != list(range(1, expected + 1)):
        raise PreferenceError(400, "INVALID_PREFERENCE_RANKS")

    title_ids = [c.title_id for c in choices]
    if len(set(title_ids)) != len(title_ids):
        raise PreferenceError(400, "DUPLICATE_PREFERENCE_TITLES")

    rows = db.execute(select(Title).where(Title.id.in_(title_ids), Title.status == "approved")).scalars().all()
    titles = {t.id: t for t in rows}
    missing = [str(tid) for tid in title_ids if tid not in titles]
    if missing:
        raise PreferenceError(400, {"code": "TITLE_NOT_AVAILABLE", "title_ids": missing})
    return titles


def _next_submission_seq(db: Session) -> int:
    current = db.execute(select(func.max(Preference.submission_seq))).scalar_one_or_none()
    return int(current or 0) + 1


def _apply_custom_title(pref: Preference, proposal: CustomTitleProposal | None) -> None:
    if proposal is None or not proposal.title.strip():
        pref.custom_title = None
        pref.custom_supervisor_name = None
        pref.custom_supervisor_username = None
        pref.custom_status = None
        pref.custom_approved_supervisor_id = None
        pref.custom_approved_at = None
        pref.custom_rejected_reason = None
        return

    title = proposal.title.strip()
    supervisor_name = (proposal.supervisor_name or "").strip() or None
    supervisor_username = (proposal.supervisor_username or "").strip() or None
    unchanged = (
        pref.custom_title == title
        and pref.custom_supervisor_name == supervisor_name
        and pref.custom_supervisor_username == supervisor_username
        and pref.custom_status is not None
    )
    if unchanged:
        return

    pref.custom_title = title
    pref.custom_supervisor_name = supervisor_name
    pref.custom_supervisor_username = supervisor_username
    pref.custom_status = "pending"
    pref.custom_approved_supervisor_id = None
    pref.custom_approved_at = None
    pref.custom_rejected_reason = None


def _store_submission(
    db: Session,
    student_id: uuid.UUID,
    choices: list[RankedChoice],
    titles: dict[uuid.UUID, Title],
    custom_title: CustomTitleProposal | None,
    now: datetime,
) -> Preference:
    pref = get_preference(db, student_id)
    if pref is None:
        pref = Preference(
            student_id=student_id,
            submitted_at=now,
            submission_seq=_next_submission_seq(db),
            updated_at=now,
        )
        db.add(pref)
    else:
        # Old entries must be gone before new ones reuse the same ranks.
        pref.entries.clear()
        db.flush()
        pref.updated_at = now

    for c in sorted(choices, key=lambda c: c.rank):
        t = titles[c.title_id]
        pref.entries.append(
            PreferenceEntry(
                title_id=t.id,
                rank=c.rank,
                title=t.title,
                supervisor_name=t.supervisor_name or "",
            )
        )

    _apply_custom_title(pref, custom_title)
    db.commit()
    return pref


def submit_preferences(
    db: Session,
    student_id: uuid.UUID,
    choices: Iterable[RankedChoice],
    *,
    custom_title: CustomTitleProposal | None = None,
    now: datetime | None = None,
) -> Preference:
    """Create or replace a student's ranked choices.

    The first submission fixes submitted_at and submission_seq, which decide
    ties during matching; resubmitting only replaces the entries. Two first
    submissions racing for the same sequence number (or the same student) hit
    a unique constraint; the loser retries against the fresh state.
    """

    now = now or datetime.now(timezone.utc)
    _get_student(db, student_id)

    if deadline_passed(get_system_settings(db), now=now):
        raise PreferenceError(400, "PREFERENCE_DEADLINE_PASSED")

    choices = list(choices)
    titles = _validate_choices(db, choices)

    for attempt in range(1, _SUBMIT_ATTEMPTS + 1):
        try:
            pref = _store_submission(db, student_id, choices, titles, custom_title, now)
        except IntegrityError as exc:
            db.rollback()
            logger.warning(
                "Preference submission for student %s collided (attempt %d/%d): %s",
                student_id,
                attempt,
                _SUBMIT_ATTEMPTS,
                exc.orig,
            )
            continue
        break
    else:
        raise PreferenceError(409, "SUBMISSION_CONFLICT")

    db.refresh(pref)
    logger.info("Stored preferences for student %s (seq=%s)", student_id, pref.submission_seq)
    return pref


def list_custom_titles(db: Session) -> list[tuple[Preference, User | None]]:
    return [(p, u) for p, u in list_preferences(db) if p.custom_title]


def get_custom_title(db: Session, student_id: uuid.UUID) -> Preference:
    pref = get_preference(db, student_id)
    if pref is None or not pref.custom_title:
        raise PreferenceError(404, "CUSTOM_TITLE_NOT_FOUND")
    return pref


def supervisor_load(db: Session, supervisor_id: uuid.UUID, *, exclude_student_id: uuid.UUID | None = None) -> int:
    """Committed allocations held by a supervisor, optionally not counting one student."""

    q = select(func.count()).select_from(Allocation).where(Allocation.supervisor_id == supervisor_id)
    if exclude_student_id is not None:
        q = q.where(Allocation.student_id != exclude_student_id)
    return int(db.execute(q).scalar_one())


def get_supervisor_with_room(db: Session, supervisor_id: uuid.UUID, *, student_id: uuid.UUID) -> User:
    supervisor = db.get(User, supervisor_id)
    if supervisor is None or supervisor.role != "supervisor":
        raise PreferenceError(400, "INVALID_SUPERVISOR")

    current = supervisor_load(db, supervisor_id, exclude_student_id=student_id)
    capacity = int(supervisor.capacity or 0)
    if current >= capacity:
        raise PreferenceError(
            409,
            {
                "code": "SUPERVISOR_AT_CAPACITY",
                "supervisor_name": supervisor.name,
                "current_count": current,
                "capacity": capacity,
            },
        )
    return supervisor


def approve_custom_title(db: Session, student_id: uuid.UUID, supervisor_id: uuid.UUID) -> Preference:
    pref = get_custom_title(db, student_id)
    supervisor = get_supervisor_with_room(db, supervisor_id, student_id=student_id)

    pref.custom_status = "approved"
    pref.custom_approved_supervisor_id = supervisor.id
    pref.custom_supervisor_name = supervisor.name
    pref.custom_supervisor_username = supervisor.username
    pref.custom_approved_at = datetime.now(timezone.utc)
    pref.custom_rejected_reason = None
    db.commit()
    db.refresh(pref)

    logger.info("Approved custom title for student %s with supervisor %s", student_id, supervisor.name)
    return pref


def reject_custom_title(
    db: Session,
    student_id: uuid.UUID,
    reason: str | None = None,
    *,
    default_reason: str = DEFAULT_REJECTION_REASON,
) -> Preference:
    pref = get_custom_title(db, student_id)
    pref.custom_status = "rejected"
    pref.custom_rejected_reason = (reason or "").strip() or default_reason
    pref.custom_approved_supervisor_id = None
    pref.custom_approved_at = None
    db.commit()
    db.refresh(pref)
    return pref
