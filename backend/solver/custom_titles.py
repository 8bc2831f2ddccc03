from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable

from solver.types import (
    AllocationRecord,
    ApprovedCustomTitle,
    StudentPreferences,
    SupervisorRecord,
    TitleId,
)


logger = logging.getLogger(__name__)

# Namespace for synthetic title ids; a student's custom title id is stable across runs.
CUSTOM_TITLE_NAMESPACE = uuid.UUID("3f0c6c52-5a3e-4c1e-9a3e-2d6f5b1c7e10")


@dataclass
class CustomTitleResolution:
    allocations: list[AllocationRecord] = field(default_factory=list)
    matching_pool: list[StudentPreferences] = field(default_factory=list)


def custom_title_id(student_id) -> TitleId:
    return TitleId(uuid.uuid5(CUSTOM_TITLE_NAMESPACE, str(student_id)))


def _find_supervisor(
    proposal: ApprovedCustomTitle,
    *,
    by_id: dict,
    supervisors: list[SupervisorRecord],
) -> SupervisorRecord | None:
    if proposal.approved_supervisor_id is not None:
        return by_id.get(proposal.approved_supervisor_id)

    username = (proposal.supervisor_username or "").strip().lower()
    if username:
        for s in supervisors:
            if (s.username or "").strip().lower() == username:
                return s

    name = (proposal.supervisor_name or "").strip()
    if name:
        for s in supervisors:
            if s.name == name:
                return s
    return None


def resolve_custom_titles(
    preferences: Iterable[StudentPreferences],
    supervisors: Iterable[SupervisorRecord],
    *,
    marker: str = "*",
) -> CustomTitleResolution:
    """Split students into direct custom-title allocations and the matching pool.

    Only an approved proposal bypasses matching. Pending and rejected proposals
    are ignored here and the student competes with their ranked preferences.
    An approved proposal whose supervisor cannot be resolved also falls through
    to matching.
    """

    roster = list(supervisors)
    by_id = {s.id: s for s in roster}
    result = CustomTitleResolution()

    for pref in preferences:
        proposal = pref.custom_title
        if not isinstance(proposal, ApprovedCustomTitle):
            result.matching_pool.append(pref)
            continue

        supervisor = _find_supervisor(proposal, by_id=by_id, supervisors=roster)
        if supervisor is None:
            logger.warning(
                "Approved custom title for student %s references an unknown supervisor "
                "(id=%s, username=%r, name=%r); falling back to regular matching",
                pref.student_id,
                proposal.approved_supervisor_id,
                proposal.supervisor_username,
                proposal.supervisor_name,
            )
            result.matching_pool.append(pref)
            continue

        result.allocations.append(
            AllocationRecord(
                student_id=pref.student_id,
                student_name=pref.student_name,
                student_username=pref.student_username,
                title_id=custom_title_id(pref.student_id),
                title=f"{proposal.title}{marker}",
                supervisor_id=supervisor.id,
                supervisor_name=supervisor.name,
                is_custom_title=True,
                preference_rank=None,
            )
        )

    return result
