"""
Groundwork - Database Layer

Async SQLAlchemy engine ownership and the ORM mappings used by the
repositories.

Usage:
    from db import DatabaseService

    db = await DatabaseService.create(config_service)
    async with db.session() as session:
        ...
    await db.close()
"""

from db.database import (
    PING_TIMEOUT_SECONDS,
    DatabaseService,
    create_database_engine,
    normalize_dsn,
    pool_options,
)
from db.models import Base, DummyRecord

__all__ = [
    "PING_TIMEOUT_SECONDS",
    "DatabaseService",
    "create_database_engine",
    "normalize_dsn",
    "pool_options",
    "Base",
    "DummyRecord",
]
