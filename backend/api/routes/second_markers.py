from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.second_marker import (
    SecondMarkerAssignmentOut,
    SecondMarkerResponse,
    SecondMarkerStatistics,
    SupervisorPairStatsOut,
)
from services.second_marker_service import compute_second_markers


router = APIRouter()


@router.post("/assign", response_model=SecondMarkerResponse)
def assign(db: Session = Depends(get_db)) -> SecondMarkerResponse:
    outcome = compute_second_markers(db)
    return SecondMarkerResponse(
        assignments=[SecondMarkerAssignmentOut.model_validate(a) for a in outcome.assignments],
        statistics=SecondMarkerStatistics(
            total_assignments=outcome.total_assignments,
            unassigned=outcome.unassigned,
            supervisor_pair_stats=[SupervisorPairStatsOut.model_validate(s) for s in outcome.supervisor_pair_stats],
        ),
    )


@router.get("/assignments", response_model=list[SecondMarkerAssignmentOut])
def list_assignments(db: Session = Depends(get_db)) -> list[SecondMarkerAssignmentOut]:
    outcome = compute_second_markers(db)
    return [SecondMarkerAssignmentOut.model_validate(a) for a in outcome.assignments]
