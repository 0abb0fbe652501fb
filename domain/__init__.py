"""
Groundwork - Domain Layer

Example entity and repository showing where business rules live.

Usage:
    from domain import Dummy, DummyRepository

    dummy = Dummy.new("first")
    await DummyRepository(container.db).save(dummy)
"""

from domain.dummy import Dummy
from domain.dummy_repository import DummyRepository
from domain.errors import DomainError

__all__ = ["DomainError", "Dummy", "DummyRepository"]
