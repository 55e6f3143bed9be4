"""Opening the SQLite database and bringing its schema up to date."""

from __future__ import annotations

import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

_MIGRATIONS = (
    """CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY, name TEXT NOT NULL, email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL, created_at TEXT NOT NULL, archived_at TEXT)""",
    """CREATE TABLE IF NOT EXISTS todos (
        id TEXT PRIMARY KEY, user_id TEXT NOT NULL, name TEXT NOT NULL,
        description TEXT NOT NULL, is_completed INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL, archived_at TEXT)""",
    """CREATE TABLE IF NOT EXISTS user_session (
        id TEXT PRIMARY KEY, user_id TEXT NOT NULL, created_at TEXT NOT NULL,
        expiry_at TEXT NOT NULL, archived_at TEXT)""",
)


def _migrate_up(db: sqlite3.Connection) -> None:
    with db:
        db.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER NOT NULL)")
    version = db.execute("SELECT MAX(version) FROM schema_migrations").fetchone()[0] or 0
    for number, statement in enumerate(_MIGRATIONS[version:], start=version + 1):
        with db:
            db.execute(statement)
            db.execute("INSERT INTO schema_migrations (version) VALUES (?)", (number,))
        logger.info("Applied migration %d", number)


def connect_and_migrate(path: str | os.PathLike[str]) -> sqlite3.Connection:
    """Open the database at *path*, check it answers, and apply pending migrations."""
    db = sqlite3.connect(os.fspath(path), check_same_thread=False)
    try:
        db.execute("SELECT 1").fetchone()
        logger.info("Connected to database")
        _migrate_up(db)
    except BaseException:
        db.close()
        raise
    return db