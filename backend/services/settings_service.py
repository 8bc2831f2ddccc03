from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from models.system_settings import SystemSettings
from services.snapshot import as_utc


SETTINGS_ID = 1


def get_system_settings(db: Session) -> SystemSettings:
    """Return the singleton settings row, creating it on first use."""

    row = db.get(SystemSettings, SETTINGS_ID)
    if row is None:
        row = SystemSettings(
            id=SETTINGS_ID,
            allocation_completed=False,
            allocation_published=False,
            updated_at=datetime.now(timezone.utc),
        )
        db.add(row)
        db.flush()
    return row


def deadline_passed(row: SystemSettings, *, now: datetime | None = None) -> bool:
    deadline = as_utc(row.preference_deadline)
    if deadline is None:
        return False
    return (now or datetime.now(timezone.utc)) > deadline


def set_preference_deadline(db: Session, deadline: datetime | None) -> SystemSettings:
    row = get_system_settings(db)
    row.preference_deadline = as_utc(deadline)
    db.commit()
    db.refresh(row)
    return row


def set_published(db: Session, published: bool) -> SystemSettings:
    row = get_system_settings(db)
    row.allocation_published = published
    row.published_at = datetime.now(timezone.utc) if published else None
    db.commit()
    db.refresh(row)
    return row
