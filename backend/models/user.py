from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


USER_ROLE = Enum(
    "student",
    "supervisor",
    "admin",
    name="user_role",
    native_enum=False,
)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True)
    name = Column(Text, nullable=False, default="")
    email = Column(Text, nullable=False, default="")
    role = Column(USER_ROLE, nullable=False, default="student", index=True)
    # Supervisors only: how many students they may take on.
    capacity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (CheckConstraint("capacity >= 0", name="ck_users_capacity"),)
