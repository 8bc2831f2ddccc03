from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.title import Title
from models.user import User


logger = logging.getLogger(__name__)

REVIEW_STATUSES = ("approved", "rejected")


class TitleError(Exception):
    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def list_titles(db: Session, *, role: str | None = None, user_id: uuid.UUID | None = None) -> list[Title]:
    """Titles visible to a caller: students see the approved catalog, supervisors their own."""

    q = select(Title).order_by(Title.created_at.asc(), Title.title.asc())
    if role == "student":
        q = q.where(Title.status == "approved")
    elif role == "supervisor":
        if user_id is None:
            raise TitleError(400, "SUPERVISOR_ID_REQUIRED")
        q = q.where(Title.supervisor_id == user_id)
    return list(db.execute(q).scalars().all())


def get_title(db: Session, title_id: uuid.UUID) -> Title:
    title = db.get(Title, title_id)
    if title is None:
        raise TitleError(404, "TITLE_NOT_FOUND")
    return title


def _check_owner(title: Title, acting_supervisor_id: uuid.UUID | None) -> None:
    # Admin edits carry no acting supervisor.
    if acting_supervisor_id is not None and title.supervisor_id != acting_supervisor_id:
        raise TitleError(403, "NOT_TITLE_OWNER")


def create_title(
    db: Session,
    *,
    title: str,
    supervisor_id: uuid.UUID,
    description: str | None = None,
) -> Title:
    supervisor = db.get(User, supervisor_id)
    if supervisor is None or supervisor.role != "supervisor":
        raise TitleError(400, "INVALID_SUPERVISOR")

    row = Title(
        title=title.strip(),
        description=description,
        supervisor_id=supervisor.id,
        supervisor_name=supervisor.name,
        status="pending",
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info("Created title %s for supervisor %s", row.id, supervisor.name)
    return row


def update_title(
    db: Session,
    title_id: uuid.UUID,
    *,
    title: str | None = None,
    description: str | None = None,
    acting_supervisor_id: uuid.UUID | None = None,
) -> Title:
    row = get_title(db, title_id)
    _check_owner(row, acting_supervisor_id)

    if title is not None:
        row.title = title.strip()
    if description is not None:
        row.description = description
    db.commit()
    db.refresh(row)
    return row


def delete_title(db: Session, title_id: uuid.UUID, *, acting_supervisor_id: uuid.UUID | None = None) -> None:
    row = get_title(db, title_id)
    _check_owner(row, acting_supervisor_id)
    db.delete(row)
    db.commit()
    logger.info("Deleted title %s", title_id)


def set_title_status(db: Session, title_id: uuid.UUID, status: str) -> Title:
    if status not in REVIEW_STATUSES:
        raise TitleError(400, "INVALID_TITLE_STATUS")

    row = get_title(db, title_id)
    row.status = status
    db.commit()
    db.refresh(row)

    logger.info("Title %s marked %s", title_id, status)
    return row
