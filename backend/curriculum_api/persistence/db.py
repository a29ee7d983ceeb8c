"""SQLite connection handle + schema initialisation."""
from __future__ import annotations
import glob
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "migrations")


class Database:
    """Owns the database location; every repository gets one of these injected."""

    def __init__(self, path: str):
        self.path = path

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and rolls back on error."""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init(self) -> None:
        """Run all migration SQL files against the database."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = self.get_connection()
        try:
            for migration_file in sorted(glob.glob(os.path.join(_MIGRATIONS_DIR, "*.sql"))):
                with open(migration_file, "r", encoding="utf-8") as f:
                    conn.executescript(f.read())
                logger.debug("Applied migration %s", os.path.basename(migration_file))
            conn.commit()
        finally:
            conn.close()
