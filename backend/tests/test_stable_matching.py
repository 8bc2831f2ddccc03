from __future__ import annotations

import random
import uuid
from datetime import datetime, timedelta, timezone

from solver.stable_matching import match_students
from solver.types import PreferenceEntry, StudentPreferences, TitleRecord


T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)
SUPERVISOR = uuid.uuid4()


def _title(name: str) -> TitleRecord:
    return TitleRecord(id=uuid.uuid4(), title=name, supervisor_id=SUPERVISOR, supervisor_name="Dr Supervisor")


def _student(name: str, titles: list[TitleRecord], *, minutes: int = 0, seq: int | None = None) -> StudentPreferences:
    return StudentPreferences(
        student_id=uuid.uuid4(),
        entries=tuple(PreferenceEntry(title_id=t.id, rank=i, title=t.title) for i, t in enumerate(titles, start=1)),
        submitted_at=T0 + timedelta(minutes=minutes),
        submission_seq=seq,
        student_name=name,
        student_username=name.lower(),
    )


def _by_student(result):
    return {a.student_id: a for a in result.allocations}


def test_earlier_submission_wins_equal_rank():
    t1, t2, t3, t4, t5, t6 = (_title(f"T{i}") for i in range(1, 7))
    s1 = _student("S1", [t1, t3, t4, t5, t6], minutes=0)
    s2 = _student("S2", [t1, t2, t3, t4, t5], minutes=5)

    result = match_students([s2, s1], [t1, t2, t3, t4, t5, t6])
    got = _by_student(result)

    assert got[s1.student_id].title_id == t1.id
    assert got[s1.student_id].preference_rank == 1
    assert got[s2.student_id].title_id == t2.id
    assert got[s2.student_id].preference_rank == 2
    assert result.unmatched_student_ids == []


def test_exhausted_preferences_leave_student_unmatched():
    titles = [_title(f"T{i}") for i in range(1, 6)]
    # Each earlier student ranks a different one of S4's titles first.
    earlier = [
        _student(f"E{i}", [titles[i], *[t for t in titles if t is not titles[i]]], minutes=i)
        for i in range(5)
    ]
    s4 = _student("S4", titles, minutes=60)

    result = match_students([*earlier, s4], titles)

    assert s4.student_id not in _by_student(result)
    assert result.unmatched_student_ids == [s4.student_id]
    assert {a.student_id for a in result.allocations} == {s.student_id for s in earlier}


def test_higher_rank_beats_earlier_submission():
    t1, t2 = _title("T1"), _title("T2")
    early = _student("Early", [t2, t1], minutes=0)
    late = _student("Late", [t1, t2], minutes=30)

    got = _by_student(match_students([early, late], [t1, t2]))

    assert got[early.student_id].title_id == t2.id
    assert got[late.student_id].title_id == t1.id


def test_displaced_student_moves_to_next_choice():
    t1, t2, t3 = _title("T1"), _title("T2"), _title("T3")
    p = _student("P", [t1, t2], minutes=0)
    # Q loses T1 to P and settles on T2 as a second choice...
    q = _student("Q", [t1, t2, t3], minutes=1)
    # ...until R, who ranks T2 first, displaces Q.
    r = _student("R", [t2, t3], minutes=2)

    got = _by_student(match_students([p, q, r], [t1, t2, t3]))

    assert got[p.student_id].title_id == t1.id
    assert got[r.student_id].title_id == t2.id
    assert got[q.student_id].title_id == t3.id
    assert got[q.student_id].preference_rank == 3


def test_submission_seq_then_id_break_identical_timestamps():
    t1, t2 = _title("T1"), _title("T2")
    first = _student("First", [t1, t2], minutes=0, seq=1)
    second = _student("Second", [t1, t2], minutes=0, seq=2)

    got = _by_student(match_students([second, first], [t1, t2]))

    assert got[first.student_id].title_id == t1.id
    assert got[second.student_id].title_id == t2.id


def test_titles_not_in_approved_set_are_skipped():
    approved = _title("Approved")
    withdrawn = _title("Withdrawn")
    s = _student("S", [withdrawn, approved])

    result = match_students([s], [approved])

    assert len(result.allocations) == 1
    assert result.allocations[0].title_id == approved.id
    assert result.allocations[0].preference_rank == 2


def test_empty_pool_produces_nothing():
    result = match_students([], [_title("T1")])
    assert result.allocations == []
    assert result.unmatched_student_ids == []


def _random_instance(seed: int, *, n_students: int = 12, n_titles: int = 9, per_student: int = 5):
    rng = random.Random(seed)
    titles = [_title(f"T{i}") for i in range(n_titles)]
    students = [
        _student(f"S{i:02d}", rng.sample(titles, per_student), minutes=rng.randint(0, 4), seq=i)
        for i in range(n_students)
    ]
    return students, titles


def _title_key(student: StudentPreferences, title_id) -> tuple:
    return (student.rank_for(title_id), student.submitted_at, student.submission_seq, str(student.student_id))


def test_allocations_are_injective_and_within_preferences():
    for seed in range(20):
        students, titles = _random_instance(seed)
        by_id = {s.student_id: s for s in students}
        result = match_students(students, titles)

        title_ids = [a.title_id for a in result.allocations]
        student_ids = [a.student_id for a in result.allocations]
        assert len(title_ids) == len(set(title_ids))
        assert len(student_ids) == len(set(student_ids))

        for a in result.allocations:
            student = by_id[a.student_id]
            assert a.preference_rank == student.rank_for(a.title_id)
            assert a.is_custom_title is False

        assert set(student_ids) | set(result.unmatched_student_ids) == set(by_id)


def test_no_blocking_pairs():
    for seed in range(20):
        students, titles = _random_instance(seed)
        result = match_students(students, titles)
        assigned = {a.student_id: a.title_id for a in result.allocations}
        holder = {a.title_id: a.student_id for a in result.allocations}
        by_id = {s.student_id: s for s in students}

        for s in students:
            own = assigned.get(s.student_id)
            own_rank = s.rank_for(own) if own is not None else None
            for entry in s.entries:
                if own_rank is not None and entry.rank >= own_rank:
                    continue
                incumbent = holder.get(entry.title_id)
                assert incumbent is not None, f"seed={seed}: {s.student_name} prefers a free title"
                assert _title_key(by_id[incumbent], entry.title_id) < _title_key(s, entry.title_id), (
                    f"seed={seed}: {s.student_name} and {entry.title_id} block"
                )


def test_result_does_not_depend_on_input_order():
    students, titles = _random_instance(7)
    baseline = match_students(students, titles)

    shuffled = list(students)
    random.Random(99).shuffle(shuffled)
    again = match_students(shuffled, list(reversed(titles)))

    assert baseline.allocations == again.allocations
    assert sorted(map(str, baseline.unmatched_student_ids)) == sorted(map(str, again.unmatched_student_ids))
