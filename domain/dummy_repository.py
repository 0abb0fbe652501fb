"""
Groundwork - Dummy Repository

Persists ``Dummy`` entities through the container's database service.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select, update

from core.errors import LivenessError
from db.database import DatabaseService
from db.models import DummyRecord
from domain.dummy import Dummy

logger = logging.getLogger("groundwork.domain.dummy_repository")


class DummyRepository:
    """Save and load ``Dummy`` entities."""

    def __init__(self, db: Optional[DatabaseService]):
        self._db = db

    def _database(self) -> DatabaseService:
        if self._db is None:
            raise LivenessError("database connection is not initialized")
        return self._db

    async def save(self, dummy: Optional[Dummy]) -> None:
        """
        Insert a new entity or update a persisted one.

        New entities receive their generated id.

        Raises:
            ValueError: If ``dummy`` is None
            LivenessError: If the database service is missing or closed
        """
        if dummy is None:
            raise ValueError("dummy cannot be None")
        db = self._database()

        async with db.session() as session:
            if not dummy.is_persisted:
                record = DummyRecord(name=dummy.name)
                session.add(record)
                await session.flush()
                dummy.add_identity(record.id)
                logger.debug("Inserted dummy %s", record.id)
            else:
                await session.execute(
                    update(DummyRecord)
                    .where(DummyRecord.id == dummy.id)
                    .values(name=dummy.name)
                )
                logger.debug("Updated dummy %s", dummy.id)

    async def get(self, id: int) -> Optional[Dummy]:
        """Load one entity, or None when no row has that id."""
        async with self._database().session() as session:
            record = await session.get(DummyRecord, id)
            if record is None:
                return None
            return Dummy.reconstitute(record.id, record.name)

    async def list_all(self) -> List[Dummy]:
        async with self._database().session() as session:
            result = await session.execute(select(DummyRecord).order_by(DummyRecord.id))
            return [Dummy.reconstitute(r.id, r.name) for r in result.scalars()]
