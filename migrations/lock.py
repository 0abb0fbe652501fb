"""
Groundwork - Migrations Lock

Exclusive, non-blocking file lock so that only one migrations process runs
against a database at a time.

Usage:
    with MigrationsLock():
        ...  # run migrations
"""
from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from pathlib import Path
from typing import IO, Any, Optional

from core.errors import MigrationError, MigrationLockedError

logger = logging.getLogger("groundwork.migrations.lock")

LOCK_FILE_NAME = "groundwork-migrations.lock"


def default_lock_path() -> Path:
    return Path(tempfile.gettempdir()) / LOCK_FILE_NAME


class MigrationsLock:
    """
    POSIX ``flock`` held for the duration of a migrations command.

    The lock file keeps the holder's PID for debugging; the file itself is
    never removed so that waiting processes always lock the same inode.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else default_lock_path()
        self._file: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._file is not None

    def acquire(self) -> None:
        """
        Take the lock or fail immediately.

        Raises:
            MigrationLockedError: Another process holds the lock
            MigrationError: The lock file cannot be created
        """
        if self._file is not None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = open(self.path, "a+", encoding="utf-8")
        except OSError as exc:
            raise MigrationError(
                f"failed to open migrations lock {self.path}: {exc}", cause=exc
            ) from exc
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            lock_file.seek(0)
            holder = lock_file.read().strip() or "unknown"
            lock_file.close()
            raise MigrationLockedError(
                f"another migrations process is running (PID {holder}, lock {self.path})",
                cause=exc,
            ) from exc

        lock_file.seek(0)
        lock_file.truncate()
        lock_file.write(str(os.getpid()))
        lock_file.flush()
        self._file = lock_file
        logger.debug("Acquired migrations lock %s", self.path)

    def release(self) -> None:
        """Release the lock. Safe to call multiple times or without acquire."""
        lock_file, self._file = self._file, None
        if lock_file is None or lock_file.closed:
            return
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
        finally:
            lock_file.close()
        logger.debug("Released migrations lock %s", self.path)

    def __enter__(self) -> "MigrationsLock":
        self.acquire()
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()
