from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from solver.types import (
    NOT_ASSIGNED,
    UNKNOWN,
    AllocationRecord,
    StudentId,
    SupervisorId,
    SupervisorRecord,
)


logger = logging.getLogger(__name__)


@dataclass
class MarkerWorkload:
    supervision_count: int = 0
    second_marking_count: int = 0
    remaining_capacity: int = 0


@dataclass(frozen=True)
class SecondMarkerResult:
    student_id: StudentId
    student_name: str
    student_username: str
    title: str
    supervisor_id: SupervisorId | None
    supervisor_name: str | None
    second_marker_id: SupervisorId | None
    second_marker_name: str


@dataclass(frozen=True)
class SupervisorPairStats:
    supervisor_id: SupervisorId
    supervisor_name: str
    supervision_count: int
    second_marking_count: int
    unique_pairs: int
    pairs: list[str]


@dataclass
class SecondMarkerOutcome:
    assignments: list[SecondMarkerResult] = field(default_factory=list)
    total_assignments: int = 0
    unassigned: int = 0
    supervisor_pair_stats: list[SupervisorPairStats] = field(default_factory=list)


class SecondMarkerAssignment:
    """Greedy second-marker assignment.

    A supervisor can second-mark as many students as they supervise. Supervisors
    with the fewest possible partners are served first, and partners already
    paired with a supervisor are reused before new ones are introduced. Anything
    left over is swept onto whoever still has capacity; if nobody does, the
    student stays unassigned.
    """

    def __init__(self, allocations: Iterable[AllocationRecord], supervisors: Iterable[SupervisorRecord]) -> None:
        self.allocations = [a for a in allocations if a.supervisor_id is not None]
        self.roster: list[SupervisorRecord] = list(supervisors)
        self.supervisor_by_id: dict[SupervisorId, SupervisorRecord] = {s.id: s for s in self.roster}

        self.workload: dict[SupervisorId, MarkerWorkload] = {}
        self.pairs: dict[SupervisorId, set[SupervisorId]] = defaultdict(set)
        self.assignments: dict[StudentId, SupervisorId] = {}

    def _initialize(self) -> None:
        counts: dict[SupervisorId, int] = defaultdict(int)
        for a in self.allocations:
            counts[a.supervisor_id] += 1
        for s in self.roster:
            n = counts.get(s.id, 0)
            self.workload[s.id] = MarkerWorkload(supervision_count=n, remaining_capacity=n)

    def _candidates(self, supervisor_id: SupervisorId) -> list[SupervisorId]:
        return [
            s.id
            for s in self.roster
            if s.id != supervisor_id and self.workload[s.id].remaining_capacity > 0
        ]

    def _name(self, supervisor_id: SupervisorId | None) -> str:
        s = self.supervisor_by_id.get(supervisor_id) if supervisor_id is not None else None
        return s.name if s is not None else UNKNOWN

    def run(self) -> SecondMarkerOutcome:
        self._initialize()

        by_supervisor: dict[SupervisorId, list[AllocationRecord]] = defaultdict(list)
        for a in self.allocations:
            by_supervisor[a.supervisor_id].append(a)

        roster_order = {s.id: i for i, s in enumerate(self.roster)}
        groups = [
            (supervisor_id, allocs, self._candidates(supervisor_id))
            for supervisor_id, allocs in by_supervisor.items()
        ]
        # Most constrained first; primaries outside the roster go last among equals.
        groups.sort(key=lambda g: (len(g[2]), roster_order.get(g[0], len(roster_order))))

        for supervisor_id, allocs, pool in groups:
            self._assign_group(supervisor_id, allocs, pool)

        self._sweep_remaining()
        return self._results()

    def _assign_group(
        self,
        supervisor_id: SupervisorId,
        allocations: list[AllocationRecord],
        pool: list[SupervisorId],
    ) -> None:
        for allocation in allocations:
            available = [m for m in pool if self.workload[m].remaining_capacity > 0]
            if not available:
                return

            existing = [m for m in available if m in self.pairs[supervisor_id]]
            if existing:
                marker = existing[0]
            else:
                marker = max(available, key=lambda m: self.workload[m].remaining_capacity)
            self._assign(allocation, marker)

    def _assign(self, allocation: AllocationRecord, marker_id: SupervisorId) -> None:
        self.assignments[allocation.student_id] = marker_id

        workload = self.workload[marker_id]
        workload.second_marking_count += 1
        workload.remaining_capacity -= 1

        self.pairs[allocation.supervisor_id].add(marker_id)
        self.pairs[marker_id].add(allocation.supervisor_id)

    def _sweep_remaining(self) -> None:
        for allocation in self.allocations:
            if allocation.student_id in self.assignments:
                continue
            marker = next(iter(self._candidates(allocation.supervisor_id)), None)
            if marker is None:
                logger.warning(
                    "Could not assign second marker for student %s (%s): no supervisor with remaining capacity",
                    allocation.student_name,
                    allocation.student_id,
                )
                continue
            self._assign(allocation, marker)

    def _results(self) -> SecondMarkerOutcome:
        outcome = SecondMarkerOutcome()
        for a in self.allocations:
            marker_id = self.assignments.get(a.student_id)
            outcome.assignments.append(
                SecondMarkerResult(
                    student_id=a.student_id,
                    student_name=a.student_name,
                    student_username=a.student_username,
                    title=a.title,
                    supervisor_id=a.supervisor_id,
                    supervisor_name=a.supervisor_name,
                    second_marker_id=marker_id,
                    second_marker_name=self._name(marker_id) if marker_id is not None else NOT_ASSIGNED,
                )
            )
        outcome.total_assignments = len(self.assignments)
        outcome.unassigned = len(self.allocations) - len(self.assignments)

        for s in self.roster:
            w = self.workload[s.id]
            partners = self.pairs.get(s.id, set())
            outcome.supervisor_pair_stats.append(
                SupervisorPairStats(
                    supervisor_id=s.id,
                    supervisor_name=s.name,
                    supervision_count=w.supervision_count,
                    second_marking_count=w.second_marking_count,
                    unique_pairs=len(partners),
                    pairs=sorted(self._name(p) for p in partners),
                )
            )

        if outcome.unassigned:
            logger.warning(
                "%d of %d students left without a second marker (insufficient marking capacity)",
                outcome.unassigned,
                len(self.allocations),
            )
        return outcome


def assign_second_markers(
    allocations: Iterable[AllocationRecord],
    supervisors: Iterable[SupervisorRecord],
) -> SecondMarkerOutcome:
    return SecondMarkerAssignment(allocations, supervisors).run()
