from __future__ import annotations

import logging

from sqlalchemy import inspect

from core.database import ENGINE
import models  # noqa: F401  (registers every table on Base.metadata)
from models.base import Base


logger = logging.getLogger(__name__)


def bootstrap_schema() -> None:
    """Create any missing tables.

    Existing tables are left alone, so this is safe to run on every startup.
    """

    existing = set(inspect(ENGINE).get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing]

    with ENGINE.begin() as conn:
        Base.metadata.create_all(conn)

    if missing:
        logger.info("Created tables: %s", ", ".join(t.name for t in missing))
