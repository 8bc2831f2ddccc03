from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType, Union


StudentId = NewType("StudentId", uuid.UUID)
TitleId = NewType("TitleId", uuid.UUID)
SupervisorId = NewType("SupervisorId", uuid.UUID)

UNKNOWN = "Unknown"
NOT_ASSIGNED = "Not Assigned"


@dataclass(frozen=True)
class NoCustomTitle:
    pass


@dataclass(frozen=True)
class PendingCustomTitle:
    title: str
    supervisor_name: str | None = None
    supervisor_username: str | None = None


@dataclass(frozen=True)
class ApprovedCustomTitle:
    title: str
    supervisor_name: str | None = None
    supervisor_username: str | None = None
    approved_supervisor_id: SupervisorId | None = None


@dataclass(frozen=True)
class RejectedCustomTitle:
    title: str
    supervisor_name: str | None = None
    supervisor_username: str | None = None
    reason: str | None = None


CustomTitle = Union[NoCustomTitle, PendingCustomTitle, ApprovedCustomTitle, RejectedCustomTitle]


@dataclass(frozen=True)
class PreferenceEntry:
    title_id: TitleId
    rank: int
    title: str = ""
    supervisor_name: str = ""


@dataclass(frozen=True)
class StudentPreferences:
    """One student's submission as seen by the engines."""

    student_id: StudentId
    entries: tuple[PreferenceEntry, ...]
    submitted_at: datetime
    submission_seq: int | None = None
    student_name: str = UNKNOWN
    student_username: str = UNKNOWN
    custom_title: CustomTitle = field(default_factory=NoCustomTitle)

    def ranked_entries(self) -> tuple[PreferenceEntry, ...]:
        return tuple(sorted(self.entries, key=lambda e: e.rank))

    def rank_for(self, title_id: TitleId) -> int | None:
        for entry in self.entries:
            if entry.title_id == title_id:
                return entry.rank
        return None

    def priority_key(self) -> tuple:
        # Earlier submission first; sequence then id keep equal timestamps deterministic.
        seq = self.submission_seq if self.submission_seq is not None else -1
        return (self.submitted_at, seq, str(self.student_id))


@dataclass(frozen=True)
class TitleRecord:
    id: TitleId
    title: str
    supervisor_id: SupervisorId | None
    supervisor_name: str | None = None


@dataclass(frozen=True)
class SupervisorRecord:
    id: SupervisorId
    name: str
    username: str = ""
    capacity: int = 0


@dataclass(frozen=True)
class StudentRecord:
    id: StudentId
    name: str
    username: str = ""


@dataclass(frozen=True)
class AllocationRecord:
    student_id: StudentId
    title_id: TitleId
    title: str
    supervisor_id: SupervisorId | None
    supervisor_name: str | None
    is_custom_title: bool = False
    preference_rank: int | None = None
    student_name: str = UNKNOWN
    student_username: str = UNKNOWN


@dataclass(frozen=True)
class AllocationSnapshot:
    """Point-in-time read of everything an allocation run needs."""

    preferences: tuple[StudentPreferences, ...]
    titles: tuple[TitleRecord, ...]
    students: tuple[StudentRecord, ...]
    supervisors: tuple[SupervisorRecord, ...]
