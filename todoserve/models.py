"""Data objects exchanged between the HTTP layer and the store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def format_time(value: datetime) -> str:
    """Render a timestamp as RFC 3339 with trailing fractional zeros trimmed."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.replace(microsecond=0, tzinfo=None).isoformat()
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.isoformat()[-6:]
    return text + ("Z" if offset == "+00:00" else offset)


def _optional_time(value: datetime | None) -> str | None:
    return None if value is None else format_time(value)


def _decode(data: Any, fields: dict[str, type]) -> dict[str, Any]:
    """Pick known fields out of a JSON object, matching keys case-insensitively."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    folded = {name.casefold(): name for name in fields}
    values: dict[str, Any] = {}
    for key, raw in data.items():
        name = key if key in fields else folded.get(key.casefold())
        if name is None or raw is None:
            continue
        if not isinstance(raw, fields[name]):
            raise ValueError(f"field {name!r} must be of type {fields[name].__name__}")
        values[name] = raw
    return values


@dataclass
class UserSession:
    id: str = ""
    user_id: str = ""
    created_at: datetime = ZERO_TIME
    archived_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": format_time(self.created_at),
            "archived_at": _optional_time(self.archived_at),
        }


@dataclass
class Todo:
    id: str = ""
    user_id: str = ""
    name: str = ""
    description: str = ""
    is_completed: bool = False
    created_at: datetime = ZERO_TIME
    archived_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "is_completed": self.is_completed,
            "created_at": format_time(self.created_at),
            "archived_at": _optional_time(self.archived_at),
        }


@dataclass
class CreateTodo:
    """Request to create a todo; the owner is never taken from JSON."""

    name: str = ""
    description: str = ""
    user_id: str = ""

    @classmethod
    def from_json(cls, data: Any) -> CreateTodo:
        return cls(**_decode(data, {"name": str, "description": str}))

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


@dataclass
class UpdateTodo:
    id: str = ""
    name: str = ""
    description: str = ""
    is_completed: bool = False

    @classmethod
    def from_json(cls, data: Any) -> UpdateTodo:
        fields = {"id": str, "name": str, "description": str, "is_completed": bool}
        return cls(**_decode(data, fields))


@dataclass
class User:
    """A registered user; the password hash is never serialised."""

    id: str = ""
    name: str = ""
    email: str = ""
    password: str = ""
    created_at: datetime = ZERO_TIME
    archived_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": format_time(self.created_at),
        }
        if self.archived_at is not None:
            result["archived_at"] = format_time(self.archived_at)
        return result


@dataclass
class UserRequest:
    name: str = ""
    email: str = ""
    password: str = ""

    @classmethod
    def from_json(cls, data: Any) -> UserRequest:
        return cls(**_decode(data, {"name": str, "email": str, "password": str}))