from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from solver.types import (
    AllocationRecord,
    StudentId,
    StudentPreferences,
    TitleId,
    TitleRecord,
)


logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    allocations: list[AllocationRecord] = field(default_factory=list)
    unmatched_student_ids: list[StudentId] = field(default_factory=list)


class StableMatching:
    """Student-proposing deferred acceptance over capacity-1 titles.

    Titles have no stated preferences of their own. A title prefers the student
    who ranked it higher; equal ranks go to the earlier submission, then the
    lower submission sequence, then the lower student id.
    """

    def __init__(self, students: Iterable[StudentPreferences], titles: Iterable[TitleRecord]) -> None:
        self.students: dict[StudentId, StudentPreferences] = {}
        for s in students:
            self.students[s.student_id] = s
        self.titles: dict[TitleId, TitleRecord] = {t.id: t for t in titles}

        self.proposals: dict[StudentId, tuple] = {
            sid: s.ranked_entries() for sid, s in self.students.items()
        }
        self.cursor: dict[StudentId, int] = {sid: 0 for sid in self.students}
        self.holder: dict[TitleId, StudentId] = {}

    def _title_rank_key(self, student_id: StudentId, title_id: TitleId) -> tuple:
        student = self.students[student_id]
        rank = student.rank_for(title_id)
        return (rank if rank is not None else 1 << 30, *student.priority_key())

    def _prefers(self, title_id: TitleId, challenger: StudentId, incumbent: StudentId) -> bool:
        return self._title_rank_key(challenger, title_id) < self._title_rank_key(incumbent, title_id)

    def run(self) -> MatchResult:
        order = sorted(self.students.values(), key=lambda s: s.priority_key())
        free: deque[StudentId] = deque(s.student_id for s in order)
        unmatched: list[StudentId] = []

        while free:
            student_id = free[0]
            proposals = self.proposals[student_id]
            idx = self.cursor[student_id]

            if idx >= len(proposals):
                free.popleft()
                unmatched.append(student_id)
                continue

            title_id = proposals[idx].title_id
            if title_id not in self.titles:
                # Not an approved title: counts as a rejection.
                self.cursor[student_id] = idx + 1
                continue

            incumbent = self.holder.get(title_id)
            if incumbent is None:
                self.holder[title_id] = student_id
                free.popleft()
            elif self._prefers(title_id, student_id, incumbent):
                self.holder[title_id] = student_id
                free.popleft()
                self.cursor[incumbent] += 1
                free.append(incumbent)
            else:
                self.cursor[student_id] = idx + 1

        for student_id in unmatched:
            s = self.students[student_id]
            logger.info("Student %s (%s) was not allocated any title", s.student_name, student_id)

        return MatchResult(allocations=self._allocations(), unmatched_student_ids=unmatched)

    def _allocations(self) -> list[AllocationRecord]:
        out: list[AllocationRecord] = []
        for title_id, student_id in self.holder.items():
            title = self.titles[title_id]
            student = self.students[student_id]
            out.append(
                AllocationRecord(
                    student_id=student_id,
                    student_name=student.student_name,
                    student_username=student.student_username,
                    title_id=title_id,
                    title=title.title,
                    supervisor_id=title.supervisor_id,
                    supervisor_name=title.supervisor_name,
                    is_custom_title=False,
                    preference_rank=student.rank_for(title_id),
                )
            )
        out.sort(key=lambda a: (a.student_name, str(a.student_id)))
        return out


def match_students(
    students: Iterable[StudentPreferences],
    titles: Iterable[TitleRecord],
) -> MatchResult:
    return StableMatching(students, titles).run()
