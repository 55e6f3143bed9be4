"""Queries for users, sessions and todos."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from todoserve.models import CreateTodo, Todo, UpdateTodo, User, UserSession

SESSION_LIFETIME = timedelta(hours=24)


class StoreError(Exception):
    """A database operation failed."""


class SessionError(StoreError):
    """A session is missing, expired or already archived."""


class NotFoundError(StoreError):
    """The requested record does not exist."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _parse(text: str | None) -> datetime | None:
    return None if text is None else datetime.fromisoformat(text)


def _execute(db: sqlite3.Connection, sql: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
    try:
        with db:
            return db.execute(sql, params)
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc


def _summary(row: tuple[str, str, int]) -> Todo:
    name, description, is_completed = row
    return Todo(name=name, description=description, is_completed=bool(is_completed))


def create_user_session(db: sqlite3.Connection, session: UserSession) -> UserSession:
    """Insert a session for ``session.user_id`` and fill in its id and times."""
    now = _now()
    session_id = str(uuid.uuid4())
    _execute(
        db,
        "INSERT INTO user_session (id, user_id, created_at, expiry_at) VALUES (?, ?, ?, ?)",
        (session_id, session.user_id, _stamp(now), _stamp(now + SESSION_LIFETIME)),
    )
    session.id, session.created_at, session.archived_at = session_id, now, None
    return session


def archive_session(db: sqlite3.Connection, session_id: str) -> None:
    _execute(
        db, "UPDATE user_session SET archived_at = ? WHERE id = ?", (_stamp(_now()), session_id)
    )


def logout_if_not_expired(db: sqlite3.Connection, session_id: str) -> None:
    """Archive a live session, or raise SessionError if it is not live."""
    now = _stamp(_now())
    cursor = _execute(
        db,
        "UPDATE user_session SET archived_at = ? "
        "WHERE id = ? AND archived_at IS NULL AND expiry_at > ?",
        (now, session_id, now),
    )
    if cursor.rowcount == 0:
        raise SessionError("cannot logout: session is either expired or already archived")


def create_todo(db: sqlite3.Connection, todo: CreateTodo) -> None:
    _execute(
        db,
        "INSERT INTO todos (id, user_id, name, description, created_at) VALUES (?, ?, ?, ?, ?)",
        (str(uuid.uuid4()), todo.user_id, todo.name, todo.description, _stamp(_now())),
    )


def update_todo(db: sqlite3.Connection, todo: UpdateTodo, user_id: str) -> None:
    _execute(
        db,
        "UPDATE todos SET name = ?, description = ?, is_completed = ? "
        "WHERE id = ? AND user_id = ?",
        (todo.name, todo.description, int(todo.is_completed), todo.id, user_id),
    )


def validate_session(db: sqlite3.Connection, session_id: str) -> str:
    """Return the user id owning a live session, or raise SessionError."""
    try:
        row = _execute(
            db,
            "SELECT user_id FROM user_session "
            "WHERE id = ? AND archived_at IS NULL AND expiry_at > ?",
            (session_id, _stamp(_now())),
        ).fetchone()
    except StoreError:
        row = None
    if row is None:
        raise SessionError("invalid or expired session")
    return row[0]


def get_all_todos(db: sqlite3.Connection, user_id: str) -> list[Todo]:
    """Return the user's active todos with name, description and state only."""
    rows = _execute(
        db,
        "SELECT name, description, is_completed FROM todos "
        "WHERE user_id = ? AND archived_at IS NULL",
        (user_id,),
    ).fetchall()
    return [_summary(row) for row in rows]


def get_todo_by_id(db: sqlite3.Connection, todo_id: str, user_id: str) -> Todo:
    try:
        row = _execute(
            db,
            "SELECT name, description, is_completed FROM todos "
            "WHERE id = ? AND user_id = ? AND archived_at IS NULL",
            (todo_id, user_id),
        ).fetchone()
    except StoreError:
        row = None
    if row is None:
        raise NotFoundError("todo not found")
    return _summary(row)


def archive_todo(db: sqlite3.Connection, todo_id: str, user_id: str) -> None:
    cursor = _execute(
        db,
        "UPDATE todos SET archived_at = ? WHERE id = ? AND user_id = ? AND archived_at IS NULL",
        (_stamp(_now()), todo_id, user_id),
    )
    if cursor.rowcount == 0:
        raise NotFoundError("todo not found or already archived")


def create_user(db: sqlite3.Connection, user: User) -> None:
    _execute(
        db,
        "INSERT INTO users (id, name, email, password, created_at) VALUES (?, ?, ?, ?, ?)",
        (str(uuid.uuid4()), user.name, user.email, user.password, _stamp(_now())),
    )


def get_user_by_email(db: sqlite3.Connection, email: str) -> User:
    row = _execute(
        db,
        "SELECT id, name, email, password, created_at, archived_at FROM users WHERE email = ?",
        (email,),
    ).fetchone()
    if row is None:
        raise NotFoundError("user not found")
    user_id, name, user_email, hashed, created_at, archived_at = row
    return User(
        id=user_id,
        name=name,
        email=user_email,
        password=hashed,
        created_at=_parse(created_at),
        archived_at=_parse(archived_at),
    )