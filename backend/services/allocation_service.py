from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from core.config import settings
from models.allocation import Allocation
from models.allocation_run import AllocationRun
from models.user import User
from services.run_lock import RunLock, allocation_run_lock
from services.settings_service import get_system_settings
from services.snapshot import load_allocation_snapshot
from solver.custom_titles import resolve_custom_titles
from solver.errors import NoAllocationInputError
from solver.stable_matching import match_students
from solver.types import AllocationRecord, AllocationSnapshot, SupervisorRecord


logger = logging.getLogger(__name__)


@dataclass
class AllocationOutcome:
    run_id: uuid.UUID
    allocations: list[AllocationRecord] = field(default_factory=list)
    statistics: dict[str, Any] = field(default_factory=dict)


def supervisor_utilization(
    supervisors: Iterable[SupervisorRecord],
    allocations: Iterable[AllocationRecord],
) -> list[dict[str, Any]]:
    """Load per supervisor against declared capacity. Over-capacity is reported, never prevented."""

    current = Counter(a.supervisor_id for a in allocations if a.supervisor_id is not None)
    out: list[dict[str, Any]] = []
    for s in supervisors:
        n = current.get(s.id, 0)
        out.append(
            {
                "supervisor_id": str(s.id),
                "supervisor_name": s.name,
                "current": n,
                "capacity": s.capacity,
                "remaining": max(s.capacity - n, 0),
                "is_over_capacity": n > s.capacity,
            }
        )
    return out


def compute_statistics(
    snapshot: AllocationSnapshot,
    *,
    custom_allocations: list[AllocationRecord],
    regular_allocations: list[AllocationRecord],
    unmatched_student_ids: Iterable,
    ranks: int | None = None,
) -> dict[str, Any]:
    ranks = ranks or settings.preferences_per_student

    with_preferences = {p.student_id for p in snapshot.preferences}
    everyone = {s.id for s in snapshot.students} | with_preferences
    allocated = {a.student_id for a in custom_allocations} | {a.student_id for a in regular_allocations}

    distribution = {f"rank{r}": 0 for r in range(1, ranks + 1)}
    for a in regular_allocations:
        key = f"rank{a.preference_rank}"
        if key in distribution:
            distribution[key] += 1

    custom_states = Counter(type(p.custom_title).__name__ for p in snapshot.preferences)

    return {
        "total_students": len(everyone),
        "students_with_approved_custom_titles": len(custom_allocations),
        "students_with_regular_allocations": len(regular_allocations),
        "unallocated_students": len(everyone - allocated),
        "preference_distribution": distribution,
        "students_with_preferences": len(with_preferences),
        "students_without_preferences": len(everyone - with_preferences),
        "students_with_pending_custom_titles": custom_states.get("PendingCustomTitle", 0),
        "students_with_rejected_custom_titles": custom_states.get("RejectedCustomTitle", 0),
        "unmatched_student_ids": [str(sid) for sid in unmatched_student_ids],
        "supervisor_utilization": supervisor_utilization(
            snapshot.supervisors,
            [*custom_allocations, *regular_allocations],
        ),
    }


def _record_no_input(db: Session, *, code: str, message: str) -> None:
    db.add(
        AllocationRun(
            created_at=datetime.now(timezone.utc),
            status="NO_INPUT",
            statistics={},
            notes=f"{code}: {message}",
        )
    )
    db.commit()


def _allocation_row(run_id: uuid.UUID, a: AllocationRecord, *, now: datetime) -> Allocation:
    return Allocation(
        run_id=run_id,
        student_id=a.student_id,
        student_name=a.student_name,
        student_username=a.student_username,
        title_id=a.title_id,
        title=a.title,
        supervisor_id=a.supervisor_id,
        supervisor_name=a.supervisor_name,
        is_custom_title=a.is_custom_title,
        preference_rank=a.preference_rank,
        allocated_at=now,
    )


def run_allocation(db: Session, *, lock: RunLock = allocation_run_lock) -> AllocationOutcome:
    """Run custom-title resolution and stable matching, then replace all allocations.

    Preconditions are checked before anything is deleted. The delete and the
    inserts share one transaction, so readers never observe an empty table.
    """

    with lock.hold():
        snapshot = load_allocation_snapshot(db)

        if not snapshot.preferences:
            message = "No student preferences have been submitted."
            _record_no_input(db, code="NO_PREFERENCES", message=message)
            raise NoAllocationInputError("NO_PREFERENCES", message)
        if not snapshot.titles:
            message = "There are no approved titles to allocate."
            _record_no_input(db, code="NO_APPROVED_TITLES", message=message)
            raise NoAllocationInputError("NO_APPROVED_TITLES", message)

        resolution = resolve_custom_titles(
            snapshot.preferences,
            snapshot.supervisors,
            marker=settings.custom_title_marker,
        )
        match = match_students(resolution.matching_pool, snapshot.titles)

        statistics = compute_statistics(
            snapshot,
            custom_allocations=resolution.allocations,
            regular_allocations=match.allocations,
            unmatched_student_ids=match.unmatched_student_ids,
        )
        allocations = [*resolution.allocations, *match.allocations]

        try:
            now = datetime.now(timezone.utc)
            run = AllocationRun(created_at=now, status="COMPLETED", statistics=statistics)
            db.add(run)
            db.flush()

            db.execute(delete(Allocation))
            db.add_all(_allocation_row(run.id, a, now=now) for a in allocations)

            system = get_system_settings(db)
            system.allocation_completed = statistics["unallocated_students"] == 0
            system.allocation_published = False
            system.published_at = None

            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info(
        "Allocation run %s: %d custom, %d matched, %d unallocated of %d students",
        run.id,
        statistics["students_with_approved_custom_titles"],
        statistics["students_with_regular_allocations"],
        statistics["unallocated_students"],
        statistics["total_students"],
    )
    return AllocationOutcome(run_id=run.id, allocations=allocations, statistics=statistics)


def list_allocations(
    db: Session,
    *,
    supervisor_id: uuid.UUID | None = None,
    student_id: uuid.UUID | None = None,
) -> list[Allocation]:
    q = select(Allocation)
    if supervisor_id is not None:
        q = q.where(Allocation.supervisor_id == supervisor_id)
    if student_id is not None:
        q = q.where(Allocation.student_id == student_id)
    q = q.order_by(Allocation.student_name.asc(), Allocation.student_id.asc())
    return list(db.execute(q).scalars().all())


def allocation_summary(db: Session) -> dict[str, int]:
    total_students = db.execute(select(func.count()).select_from(User).where(User.role == "student")).scalar_one()
    allocated = db.execute(select(func.count()).select_from(Allocation)).scalar_one()
    custom = db.execute(
        select(func.count()).select_from(Allocation).where(Allocation.is_custom_title.is_(True))
    ).scalar_one()
    return {
        "total_students": int(total_students),
        "allocated_students": int(allocated),
        "unallocated_students": max(int(total_students) - int(allocated), 0),
        "custom_titles": int(custom),
    }


def list_runs(db: Session, *, limit: int = 50) -> list[AllocationRun]:
    q = select(AllocationRun).order_by(AllocationRun.created_at.desc(), AllocationRun.id).limit(limit)
    return list(db.execute(q).scalars().all())


def published_allocations(
    db: Session,
    *,
    student_id: uuid.UUID | None = None,
    supervisor_id: uuid.UUID | None = None,
) -> list[Allocation]:
    """Allocations visible to students and supervisors; empty until published."""

    if not get_system_settings(db).allocation_published:
        return []
    return list_allocations(db, student_id=student_id, supervisor_id=supervisor_id)
