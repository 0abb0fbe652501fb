"""
Groundwork - Dummy Entity

Minimal example entity showing how domain objects validate their own
invariants and gain an identity once persisted.
"""
from __future__ import annotations

from domain.errors import DomainError


class Dummy:
    """
    Example entity with a generated identity.

    An ``id`` of 0 means the entity has not been persisted yet.
    """

    __slots__ = ("_id", "_name")

    def __init__(self, id: int, name: str):
        self._id = id
        self._name = name

    @classmethod
    def new(cls, name: str) -> "Dummy":
        """
        Create an unsaved entity.

        Raises:
            DomainError: If the name is empty
        """
        if not name:
            raise DomainError("Name must not be empty")
        return cls(0, name)

    @classmethod
    def reconstitute(cls, id: int, name: str) -> "Dummy":
        """Rebuild an entity from stored values without validation."""
        return cls(id, name)

    def add_identity(self, id: int) -> None:
        self._id = id

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_persisted(self) -> bool:
        return self._id != 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dummy):
            return NotImplemented
        return self._id == other._id and self._name == other._name

    def __repr__(self) -> str:
        return f"Dummy(id={self._id}, name={self._name!r})"
