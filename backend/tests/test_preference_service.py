from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

import services.preference_service as preference_service
from services.allocation_service import run_allocation
from services.preference_service import (
    DEFAULT_REJECTION_REASON,
    CustomTitleProposal,
    PreferenceError,
    RankedChoice,
    approve_custom_title,
    reject_custom_title,
    submit_preferences,
)
from services.settings_service import set_preference_deadline
from services.snapshot import as_utc


NOW = datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)


def _choices(titles) -> list[RankedChoice]:
    return [RankedChoice(title_id=t.id, rank=i) for i, t in enumerate(titles, start=1)]


@pytest.fixture
def catalog(make_user, make_title):
    sup = make_user("Dr Ada", role="supervisor", username="ada", capacity=1)
    return sup, [make_title(f"Topic {i}", sup) for i in range(1, 8)]


def test_first_submission_fixes_time_and_sequence(db, make_user, catalog):
    _sup, titles = catalog
    alice, ben = make_user("Alice"), make_user("Ben")

    a = submit_preferences(db, alice.id, _choices(titles[:5]), now=NOW)
    b = submit_preferences(db, ben.id, _choices(titles[:5]), now=NOW)

    assert (a.submission_seq, b.submission_seq) == (1, 2)
    assert [e.rank for e in a.entries] == [1, 2, 3, 4, 5]
    assert a.entries[0].title == "Topic 1"
    assert a.entries[0].supervisor_name == "Dr Ada"

    later = NOW + timedelta(hours=2)
    again = submit_preferences(db, alice.id, _choices(list(reversed(titles[2:7]))), now=later)

    assert again.id == a.id
    assert again.submission_seq == 1
    assert as_utc(again.submitted_at) == NOW
    assert as_utc(again.updated_at) == later
    assert [e.title for e in again.entries] == ["Topic 7", "Topic 6", "Topic 5", "Topic 4", "Topic 3"]


@pytest.mark.parametrize(
    "build, code",
    [
        (lambda t: _choices(t[:4]), "EXACTLY_5_PREFERENCES_REQUIRED"),
        (lambda t: [RankedChoice(title_id=x.id, rank=r) for x, r in zip(t[:5], (1, 2, 3, 4, 6))], "INVALID_PREFERENCE_RANKS"),
        (lambda t: [RankedChoice(title_id=t[0].id, rank=r) for r in range(1, 6)], "DUPLICATE_PREFERENCE_TITLES"),
        (lambda t: [*_choices(t[:4]), RankedChoice(title_id=uuid.uuid4(), rank=5)], "TITLE_NOT_AVAILABLE"),
    ],
)
def test_invalid_submissions_are_rejected(db, make_user, catalog, build, code):
    _sup, titles = catalog
    student = make_user("Alice")

    with pytest.raises(PreferenceError) as exc:
        submit_preferences(db, student.id, build(titles), now=NOW)

    detail = exc.value.detail
    assert exc.value.status_code == 400
    assert (detail if isinstance(detail, str) else detail["code"]) == code


def test_unapproved_title_is_not_available(db, make_user, make_title, catalog):
    sup, titles = catalog
    draft = make_title("Draft", sup, status="pending")
    student = make_user("Alice")

    with pytest.raises(PreferenceError) as exc:
        submit_preferences(db, student.id, _choices([*titles[:4], draft]), now=NOW)

    assert exc.value.detail["title_ids"] == [str(draft.id)]


def test_unknown_or_non_student_user_is_not_found(db, catalog):
    sup, titles = catalog

    for user_id in (uuid.uuid4(), sup.id):
        with pytest.raises(PreferenceError) as exc:
            submit_preferences(db, user_id, _choices(titles[:5]), now=NOW)
        assert exc.value.status_code == 404
        assert exc.value.detail == "STUDENT_NOT_FOUND"


def test_deadline_blocks_submission(db, make_user, catalog):
    _sup, titles = catalog
    student = make_user("Alice")
    set_preference_deadline(db, NOW - timedelta(minutes=1))

    with pytest.raises(PreferenceError) as exc:
        submit_preferences(db, student.id, _choices(titles[:5]), now=NOW)
    assert exc.value.detail == "PREFERENCE_DEADLINE_PASSED"

    set_preference_deadline(db, None)
    assert submit_preferences(db, student.id, _choices(titles[:5]), now=NOW).submission_seq == 1


def test_custom_title_status_follows_resubmissions(db, make_user, catalog):
    sup, titles = catalog
    student = make_user("Alice")
    proposal = CustomTitleProposal(title="My Idea", supervisor_username="ada")

    pref = submit_preferences(db, student.id, _choices(titles[:5]), custom_title=proposal, now=NOW)
    assert pref.custom_status == "pending"

    approve_custom_title(db, student.id, sup.id)
    # Same proposal resubmitted: approval stands. Username is normalised on approval.
    pref = submit_preferences(
        db,
        student.id,
        _choices(titles[:5]),
        custom_title=CustomTitleProposal(title="My Idea", supervisor_name="Dr Ada", supervisor_username="ada"),
        now=NOW,
    )
    assert pref.custom_status == "approved"

    pref = submit_preferences(
        db, student.id, _choices(titles[:5]), custom_title=CustomTitleProposal(title="New Idea"), now=NOW
    )
    assert pref.custom_status == "pending"
    assert pref.custom_approved_supervisor_id is None

    pref = submit_preferences(db, student.id, _choices(titles[:5]), now=NOW)
    assert pref.custom_title is None
    assert pref.custom_status is None


def test_approval_requires_a_supervisor_with_room(db, make_user, catalog):
    sup, titles = catalog
    other = make_user("Other", username="other")
    alice, ben = make_user("Alice"), make_user("Ben")
    for s in (alice, ben):
        submit_preferences(
            db, s.id, _choices(titles[:5]), custom_title=CustomTitleProposal(title=f"{s.name}'s idea"), now=NOW
        )

    with pytest.raises(PreferenceError) as exc:
        approve_custom_title(db, alice.id, other.id)
    assert exc.value.detail == "INVALID_SUPERVISOR"

    approve_custom_title(db, alice.id, sup.id)
    run_allocation(db)  # commits Alice's custom allocation against Dr Ada (capacity 1)

    with pytest.raises(PreferenceError) as exc:
        approve_custom_title(db, ben.id, sup.id)
    assert exc.value.status_code == 409
    assert exc.value.detail == {
        "code": "SUPERVISOR_AT_CAPACITY",
        "supervisor_name": "Dr Ada",
        "current_count": 1,
        "capacity": 1,
    }


def test_reject_records_reason(db, make_user, catalog):
    _sup, titles = catalog
    student = make_user("Alice")
    submit_preferences(db, student.id, _choices(titles[:5]), custom_title=CustomTitleProposal(title="X"), now=NOW)

    pref = reject_custom_title(db, student.id, "   ")
    assert pref.custom_status == "rejected"
    assert pref.custom_rejected_reason == DEFAULT_REJECTION_REASON

    pref = reject_custom_title(db, student.id, "Too broad")
    assert pref.custom_rejected_reason == "Too broad"


def test_missing_custom_title_is_not_found(db, make_user, catalog):
    _sup, titles = catalog
    student = make_user("Alice")
    submit_preferences(db, student.id, _choices(titles[:5]), now=NOW)

    with pytest.raises(PreferenceError) as exc:
        reject_custom_title(db, student.id)
    assert exc.value.status_code == 404


def test_colliding_sequence_number_is_retried(db, make_user, catalog, monkeypatch):
    _sup, titles = catalog
    alice, ben = make_user("Alice"), make_user("Ben")
    submit_preferences(db, alice.id, _choices(titles[:5]), now=NOW)

    real_next_seq = preference_service._next_submission_seq
    calls = []

    def stale_then_fresh(session):
        calls.append(1)
        # First read lost the race: seq 1 is already taken by Alice.
        return 1 if len(calls) == 1 else real_next_seq(session)

    monkeypatch.setattr(preference_service, "_next_submission_seq", stale_then_fresh)
    pref = submit_preferences(db, ben.id, _choices(titles[:5]), now=NOW)

    assert len(calls) == 2
    assert pref.submission_seq == 2
    assert [e.rank for e in pref.entries] == [1, 2, 3, 4, 5]


def test_persistent_sequence_collision_is_a_conflict(db, make_user, catalog, monkeypatch):
    _sup, titles = catalog
    alice, ben = make_user("Alice"), make_user("Ben")
    submit_preferences(db, alice.id, _choices(titles[:5]), now=NOW)
    monkeypatch.setattr(preference_service, "_next_submission_seq", lambda session: 1)

    with pytest.raises(PreferenceError) as exc:
        submit_preferences(db, ben.id, _choices(titles[:5]), now=NOW)

    assert exc.value.status_code == 409
    assert exc.value.detail == "SUBMISSION_CONFLICT"
    assert preference_service.get_preference(db, ben.id) is None
