"""HTTP handlers for registration, sessions and todos."""

from __future__ import annotations

import functools
import json
import logging
import sqlite3
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

import bcrypt
from flask import Response, current_app, request

from todoserve import store
from todoserve.models import CreateTodo, UpdateTodo, User, UserRequest, UserSession

logger = logging.getLogger(__name__)

DB_CONFIG_KEY = "TODO_DB"
"""Key under which the application config holds the database connection."""

BCRYPT_COST = 10
_BCRYPT_MAX_PASSWORD = 72
_BEARER = "Bearer "
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


class _Abort(Exception):
    """Stops a handler and answers with a plain-text error."""

    def __init__(self, status: HTTPStatus, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def _text(status: HTTPStatus, message: str) -> Response:
    return Response(message, status=status, content_type="text/plain; charset=utf-8")


def json_response(payload: Any, status: HTTPStatus = HTTPStatus.OK) -> Response:
    """Encode *payload* compactly, HTML-safe, followed by a newline."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _HTML_ESCAPES:
        text = text.replace(char, escape)
    return Response(text + "\n", status=status, content_type="application/json")


def _responds(view: Callable[[], Response]) -> Callable[[], Response]:
    @functools.wraps(view)
    def wrapper() -> Response:
        try:
            return view()
        except _Abort as exc:
            response = _text(exc.status, exc.message + "\n")
            response.headers["X-Content-Type-Options"] = "nosniff"
            return response

    return wrapper


def _db() -> sqlite3.Connection:
    return current_app.config[DB_CONFIG_KEY]


def _parse_body(parser: Callable[[Any], Any], message: str) -> Any:
    text = request.get_data().decode(errors="replace")
    try:
        value, _ = _DECODER.raw_decode(text.lstrip(" \t\r\n"))
        return parser(value)
    except ValueError as exc:
        raise _Abort(HTTPStatus.BAD_REQUEST, message) from exc


def bearer_session_id(header: str | None) -> str:
    """Return the session id from a ``Bearer`` Authorization value.

    Raises ValueError when the header is missing or uses another scheme.
    """
    if not header or not header.startswith(_BEARER):
        raise ValueError("Missing or invalid Authorization header")
    return header[len(_BEARER):].strip()


def _authorised_user(detailed: bool) -> str:
    try:
        session_id = bearer_session_id(request.headers.get("Authorization", ""))
    except ValueError as exc:
        raise _Abort(HTTPStatus.UNAUTHORIZED, str(exc)) from exc
    try:
        return store.validate_session(_db(), session_id)
    except store.StoreError as exc:
        message = f"Unauthorized: {exc}" if detailed else "Unauthorized"
        raise _Abort(HTTPStatus.UNAUTHORIZED, message) from exc


def _todo_id() -> str:
    todo_id = request.args.get("id", "")
    if not todo_id:
        raise _Abort(HTTPStatus.BAD_REQUEST, "Missing todo ID")
    return todo_id


@_responds
def register_handler() -> Response:
    """Create a user with a bcrypt-hashed password."""
    req = _parse_body(UserRequest.from_json, "invalid request body")
    plain = req.password.encode()
    if len(plain) > _BCRYPT_MAX_PASSWORD:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Error hashing password")
    hashed = bcrypt.hashpw(plain, bcrypt.gensalt(rounds=BCRYPT_COST)).decode()
    user = User(name=req.name, email=req.email, password=hashed)
    try:
        store.create_user(_db(), user)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to register user") from exc
    return json_response(user.to_json(), HTTPStatus.CREATED)


@_responds
def login_handler() -> Response:
    """Check credentials and open a new session."""
    creds = _parse_body(UserRequest.from_json, "Invalid request body")
    db = _db()
    try:
        user = store.get_user_by_email(db, creds.email)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.UNAUTHORIZED, "User not found") from exc
    plain = creds.password.encode()[:_BCRYPT_MAX_PASSWORD]
    try:
        matches = bcrypt.checkpw(plain, user.password.encode())
    except ValueError:
        matches = False
    if not matches:
        raise _Abort(HTTPStatus.UNAUTHORIZED, "Invalid password")
    try:
        session = store.create_user_session(db, UserSession(user_id=user.id))
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Could not create session") from exc
    return json_response({"message": "Login successful!", "session_id": session.id})


@_responds
def logout_handler() -> Response:
    """Archive the session named in the Authorization header."""
    header = request.headers.get("Authorization", "")
    if not header:
        raise _Abort(HTTPStatus.UNAUTHORIZED, "Authorization header missing")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise _Abort(HTTPStatus.UNAUTHORIZED, "Invalid Authorization header format")
    try:
        store.logout_if_not_expired(_db(), parts[1])
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.UNAUTHORIZED, str(exc)) from exc
    return _text(HTTPStatus.OK, "Logout successful")


@_responds
def create_todo_handler() -> Response:
    """Create a todo owned by the session's user."""
    user_id = _authorised_user(detailed=True)
    req = _parse_body(CreateTodo.from_json, "Invalid request body")
    req.user_id = user_id
    try:
        store.create_todo(_db(), req)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to create todo") from exc
    return json_response(req.to_json(), HTTPStatus.CREATED)


@_responds
def update_todo_handler() -> Response:
    """Replace name, description and state of one of the user's todos."""
    user_id = _authorised_user(detailed=True)
    req = _parse_body(UpdateTodo.from_json, "Invalid request body")
    logger.info("Update Request Payload: %s", req)
    try:
        store.update_todo(_db(), req, user_id)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to update todo") from exc
    return _text(HTTPStatus.OK, "Todo updated successfully")


@_responds
def get_all_todos_handler() -> Response:
    """List the user's active todos; an empty list is encoded as null."""
    user_id = _authorised_user(detailed=False)
    try:
        todos = store.get_all_todos(_db(), user_id)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, f"Failed to fetch todos: {exc}") from exc
    return json_response([todo.to_json() for todo in todos] if todos else None)


@_responds
def get_todo_handler() -> Response:
    """Return the todo named by the ``id`` query parameter."""
    user_id = _authorised_user(detailed=False)
    todo_id = _todo_id()
    try:
        todo = store.get_todo_by_id(_db(), todo_id, user_id)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.NOT_FOUND, "Todo not found") from exc
    return json_response(todo.to_json())


@_responds
def delete_todo_handler() -> Response:
    """Archive the todo named by the ``id`` query parameter."""
    user_id = _authorised_user(detailed=False)
    todo_id = _todo_id()
    try:
        store.archive_todo(_db(), todo_id, user_id)
    except store.StoreError as exc:
        raise _Abort(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to archive todo") from exc
    return _text(HTTPStatus.OK, "Todo archived")