"""
Groundwork - Database Migrations

Alembic script directory (``env.py``, ``versions/``) plus a runner that
applies revisions under an exclusive lock.

Usage:
    from migrations import run_migrations

    exit_code = run_migrations(["up"])
"""

from migrations.runner import VERSION_TABLE, run_migrations

__all__ = ["VERSION_TABLE", "run_migrations"]
