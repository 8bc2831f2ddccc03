from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone

# Must be set before core.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "development"
os.environ["AUTO_CREATE_SCHEMA"] = "true"

import pytest
from fastapi.testclient import TestClient

from core.database import ENGINE, SessionLocal
from main import app
from models import Preference, PreferenceEntry, Title, User
from models.base import Base


BASE_TIME = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(ENGINE)
    Base.metadata.create_all(ENGINE)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(name: str, *, role: str = "student", username: str | None = None, capacity: int = 0) -> User:
        user = User(
            username=username or name.lower().replace(" ", "."),
            name=name,
            email=f"{(username or name).lower().replace(' ', '.')}@example.ac.uk",
            role=role,
            capacity=capacity,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_title(db):
    def _make(text: str, supervisor: User, *, status: str = "approved") -> Title:
        title = Title(
            title=text,
            supervisor_id=supervisor.id,
            supervisor_name=supervisor.name,
            status=status,
        )
        db.add(title)
        db.commit()
        return title

    return _make


@pytest.fixture
def make_preference(db):
    """Store a submission directly, bypassing validation (ranks follow list order)."""

    counter = {"seq": 0}

    def _make(
        student: User,
        titles: list[Title],
        *,
        minutes: int = 0,
        custom_title: str | None = None,
        custom_status: str | None = None,
        custom_supervisor: User | None = None,
        custom_supervisor_username: str | None = None,
    ) -> Preference:
        counter["seq"] += 1
        pref = Preference(
            id=uuid.uuid4(),
            student_id=student.id,
            submitted_at=BASE_TIME + timedelta(minutes=minutes),
            submission_seq=counter["seq"],
            updated_at=BASE_TIME + timedelta(minutes=minutes),
        )
        for rank, t in enumerate(titles, start=1):
            pref.entries.append(
                PreferenceEntry(title_id=t.id, rank=rank, title=t.title, supervisor_name=t.supervisor_name or "")
            )
        if custom_title is not None:
            pref.custom_title = custom_title
            pref.custom_status = custom_status or "pending"
            pref.custom_supervisor_name = custom_supervisor.name if custom_supervisor is not None else None
            pref.custom_supervisor_username = custom_supervisor_username or (
                custom_supervisor.username if custom_supervisor is not None else None
            )
            if custom_status == "approved" and custom_supervisor is not None:
                pref.custom_approved_supervisor_id = custom_supervisor.id
        db.add(pref)
        db.commit()
        return pref

    return _make
