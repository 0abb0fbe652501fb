"""
Groundwork - SQLAlchemy ORM Models

Table mappings for the example domain. The schema itself is owned by the
alembic revisions under ``migrations/versions``.
"""
from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class DummyRecord(Base):
    """Row of the ``dummy`` table."""
    __tablename__ = "dummy"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<DummyRecord(id={self.id}, name={self.name!r})>"
