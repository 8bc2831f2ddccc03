from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from solver.custom_titles import custom_title_id, resolve_custom_titles
from solver.types import (
    ApprovedCustomTitle,
    PendingCustomTitle,
    PreferenceEntry,
    RejectedCustomTitle,
    StudentPreferences,
    SupervisorRecord,
)


T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)

SUP9 = SupervisorRecord(id=uuid.uuid4(), name="Dr Nine", username="sup9", capacity=3)
OTHER = SupervisorRecord(id=uuid.uuid4(), name="Dr Other", username="other", capacity=3)


def _student(name: str, custom_title=None) -> StudentPreferences:
    kwargs = {}
    if custom_title is not None:
        kwargs["custom_title"] = custom_title
    return StudentPreferences(
        student_id=uuid.uuid4(),
        entries=tuple(PreferenceEntry(title_id=uuid.uuid4(), rank=r) for r in range(1, 6)),
        submitted_at=T0,
        student_name=name,
        student_username=name.lower(),
        **kwargs,
    )


def test_approved_custom_title_bypasses_matching():
    s3 = _student("S3", ApprovedCustomTitle(title="Quantum Widgets", supervisor_username="sup9"))
    other = _student("S5")

    result = resolve_custom_titles([s3, other], [OTHER, SUP9])

    assert [p.student_id for p in result.matching_pool] == [other.student_id]
    assert len(result.allocations) == 1
    a = result.allocations[0]
    assert a.student_id == s3.student_id
    assert a.is_custom_title is True
    assert a.supervisor_id == SUP9.id
    assert a.supervisor_name == "Dr Nine"
    assert a.title == "Quantum Widgets*"
    assert a.preference_rank is None
    assert a.title_id == custom_title_id(s3.student_id)


def test_approved_supervisor_id_takes_precedence():
    s = _student(
        "S",
        ApprovedCustomTitle(title="T", supervisor_username="sup9", approved_supervisor_id=OTHER.id),
    )

    result = resolve_custom_titles([s], [SUP9, OTHER])

    assert result.allocations[0].supervisor_id == OTHER.id


def test_username_match_is_case_insensitive_and_name_is_fallback():
    by_username = _student("A", ApprovedCustomTitle(title="A", supervisor_username="  SUP9 "))
    by_name = _student("B", ApprovedCustomTitle(title="B", supervisor_name="Dr Other"))

    result = resolve_custom_titles([by_username, by_name], [SUP9, OTHER])

    got = {a.student_id: a.supervisor_id for a in result.allocations}
    assert got == {by_username.student_id: SUP9.id, by_name.student_id: OTHER.id}
    assert result.matching_pool == []


def test_unresolved_supervisor_falls_back_to_matching(caplog):
    s = _student("Lost", ApprovedCustomTitle(title="Orphan", supervisor_username="nobody"))

    with caplog.at_level(logging.WARNING, logger="solver.custom_titles"):
        result = resolve_custom_titles([s], [SUP9])

    assert result.allocations == []
    assert [p.student_id for p in result.matching_pool] == [s.student_id]
    assert "unknown supervisor" in caplog.text


def test_pending_and_rejected_proposals_compete_normally():
    pending = _student("P", PendingCustomTitle(title="Maybe", supervisor_username="sup9"))
    rejected = _student("R", RejectedCustomTitle(title="No", supervisor_username="sup9", reason="Too broad"))

    result = resolve_custom_titles([pending, rejected], [SUP9])

    assert result.allocations == []
    assert {p.student_id for p in result.matching_pool} == {pending.student_id, rejected.student_id}


def test_marker_is_configurable_and_ids_are_stable():
    s = _student("S", ApprovedCustomTitle(title="Plain", supervisor_username="sup9"))

    first = resolve_custom_titles([s], [SUP9], marker=" (custom)")
    second = resolve_custom_titles([s], [SUP9], marker=" (custom)")

    assert first.allocations[0].title == "Plain (custom)"
    assert first.allocations[0].title_id == second.allocations[0].title_id
    assert custom_title_id(s.student_id) != custom_title_id(uuid.uuid4())
