from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.allocation import (
    AllocationOut,
    AllocationResultItem,
    AllocationRunOut,
    AllocationStatistics,
    AllocationSummary,
    PublicationOut,
    RunAllocationResponse,
)
from services.allocation_service import (
    allocation_summary,
    list_allocations,
    list_runs,
    published_allocations,
    run_allocation,
)
from services.settings_service import set_published


router = APIRouter()


@router.post("/run", response_model=RunAllocationResponse)
def run_allocations(db: Session = Depends(get_db)) -> RunAllocationResponse:
    # NoAllocationInputError / AllocationRunInProgressError are mapped by app-level handlers.
    outcome = run_allocation(db)
    return RunAllocationResponse(
        run_id=outcome.run_id,
        allocations=[AllocationResultItem.model_validate(a) for a in outcome.allocations],
        statistics=AllocationStatistics.model_validate(outcome.statistics),
    )


@router.get("/", response_model=list[AllocationOut])
def get_allocations(
    supervisor_id: uuid.UUID | None = Query(default=None),
    student_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[AllocationOut]:
    return list_allocations(db, supervisor_id=supervisor_id, student_id=student_id)


@router.get("/stats", response_model=AllocationSummary)
def get_allocation_stats(db: Session = Depends(get_db)) -> AllocationSummary:
    return AllocationSummary(**allocation_summary(db))


@router.get("/runs", response_model=list[AllocationRunOut])
def get_runs(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[AllocationRunOut]:
    return list_runs(db, limit=limit)


@router.get("/published/students/{student_id}", response_model=list[AllocationOut])
def get_published_for_student(student_id: uuid.UUID, db: Session = Depends(get_db)) -> list[AllocationOut]:
    return published_allocations(db, student_id=student_id)


@router.get("/published/supervisors/{supervisor_id}", response_model=list[AllocationOut])
def get_published_for_supervisor(supervisor_id: uuid.UUID, db: Session = Depends(get_db)) -> list[AllocationOut]:
    return published_allocations(db, supervisor_id=supervisor_id)


@router.post("/publish", response_model=PublicationOut)
def publish_allocations(db: Session = Depends(get_db)) -> PublicationOut:
    return set_published(db, True)


@router.post("/unpublish", response_model=PublicationOut)
def unpublish_allocations(db: Session = Depends(get_db)) -> PublicationOut:
    return set_published(db, False)
