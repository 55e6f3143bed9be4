from http import HTTPStatus

import bcrypt
import pytest

from todoserve import store
from todoserve.database import connect_and_migrate
from todoserve.handlers import bearer_session_id
from todoserve.models import User, UserSession
from todoserve.server import setup_routes

EMAIL = "ann@example.com"


@pytest.fixture
def db(tmp_path):
    conn = connect_and_migrate(tmp_path / "todo.db")
    yield conn
    conn.close()


@pytest.fixture
def client(db):
    return setup_routes(db).test_client()


@pytest.fixture
def user_id(db):
    password = "password"
    store.create_user(db, User(name="Ann", email=EMAIL, password=password))
    return store.get_user_by_email(db, EMAIL).id


@pytest.fixture
def session_id(db, user_id):
    return store.create_user_session(db, UserSession(user_id=user_id)).id


def auth(session):
    return {"Authorization": f"Bearer {session}"}


def todo_ids(db):
    return [row[0] for row in db.execute("SELECT id FROM todos ORDER BY name")]


def test_bearer_session_id_strips_scheme_and_space():
    assert bearer_session_id("Bearer  token ") == "token"


@pytest.mark.parametrize("header", ["", None, "Basic token", "bearer token"])
def test_bearer_session_id_rejects_other_headers(header):
    with pytest.raises(ValueError, match="Missing or invalid Authorization header"):
        bearer_session_id(header)


def test_register_hashes_password(client, db):
    resp = client.post(
        "/register", json={"name": "Ann", "email": EMAIL, "password": "password"}
    )
    assert resp.status_code == HTTPStatus.CREATED
    body = resp.get_json()
    assert body["name"] == "Ann"
    assert body["email"] == EMAIL
    assert "password" not in body
    stored = store.get_user_by_email(db, EMAIL)
    assert bcrypt.checkpw(b"password", stored.password.encode())


def test_register_rejects_bad_body(client):
    resp = client.post("/register", data="not json")
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.data == b"invalid request body\n"


def test_register_duplicate_email_fails(client, user_id):
    resp = client.post(
        "/register", json={"name": "Ann", "email": EMAIL, "password": "password"}
    )
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert resp.data == b"Failed to register user\n"


def test_login_opens_valid_session(client, db):
    client.post("/register", json={"name": "Ann", "email": EMAIL, "password": "password"})
    resp = client.post("/login", json={"email": EMAIL, "password": "password"})
    assert resp.status_code == HTTPStatus.OK
    body = resp.get_json()
    assert body["message"] == "Login successful!"
    owner = store.get_user_by_email(db, EMAIL).id
    assert store.validate_session(db, body["session_id"]) == owner


def test_login_wrong_password(client):
    client.post("/register", json={"name": "Ann", "email": EMAIL, "password": "password"})
    resp = client.post("/login", json={"email": EMAIL, "password": "secret"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.data == b"Invalid password\n"


def test_login_unknown_user(client):
    resp = client.post("/login", json={"email": EMAIL, "password": "password"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.data == b"User not found\n"


def test_logout_archives_session_once(client, db, session_id):
    first = client.post("/logout", headers=auth(session_id))
    assert first.status_code == HTTPStatus.OK
    assert first.data == b"Logout successful"
    second = client.post("/logout", headers=auth(session_id))
    assert second.status_code == HTTPStatus.UNAUTHORIZED
    assert b"cannot logout: session is either expired or already archived" in second.data
    with pytest.raises(store.SessionError):
        store.validate_session(db, session_id)


def test_logout_header_errors(client):
    missing = client.post("/logout")
    assert missing.data == b"Authorization header missing\n"
    malformed = client.post("/logout", headers={"Authorization": "Bearer a b"})
    assert malformed.status_code == HTTPStatus.UNAUTHORIZED
    assert malformed.data == b"Invalid Authorization header format\n"


def test_create_todo_requires_header(client):
    resp = client.post("/CreateTodo", json={"name": "a"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.data == b"Missing or invalid Authorization header\n"


def test_create_todo_with_unknown_session(client):
    resp = client.post("/CreateTodo", json={"name": "a"}, headers=auth("token"))
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.data == b"Unauthorized: invalid or expired session\n"


def test_create_todo_stores_and_echoes(client, db, user_id, session_id):
    payload = {"name": "milk", "description": "buy milk"}
    resp = client.post("/CreateTodo", json=payload, headers=auth(session_id))
    assert resp.status_code == HTTPStatus.CREATED
    assert resp.get_json() == payload
    todos = store.get_all_todos(db, user_id)
    assert [(t.name, t.description) for t in todos] == [("milk", "buy milk")]


def test_create_todo_escapes_html(client, session_id):
    resp = client.post("/CreateTodo", json={"name": "<b>"}, headers=auth(session_id))
    assert b"\\u003cb\\u003e" in resp.data
    assert resp.get_json()["name"] == "<b>"


@pytest.mark.parametrize("body", ["", "{", '{"name": 5}', "[1]"])
def test_create_todo_bad_body(client, session_id, body):
    resp = client.post("/CreateTodo", data=body, headers=auth(session_id))
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.data == b"Invalid request body\n"


def test_get_all_todos_empty_is_null(client, session_id):
    resp = client.get("/GetAllTodos", headers=auth(session_id))
    assert resp.status_code == HTTPStatus.OK
    assert resp.data == b"null\n"


def test_get_all_todos_lists_active(client, session_id):
    for name in ("a", "b"):
        client.post("/CreateTodo", json={"name": name}, headers=auth(session_id))
    resp = client.get("/GetAllTodos", headers=auth(session_id))
    names = sorted(todo["name"] for todo in resp.get_json())
    assert names == ["a", "b"]


def test_get_all_todos_expired_session(client, db, session_id):
    db.execute(
        "UPDATE user_session SET expiry_at = ?", ("2000-01-01T00:00:00.000000+00:00",)
    )
    db.commit()
    resp = client.get("/GetAllTodos", headers=auth(session_id))
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.data == b"Unauthorized\n"


def test_get_todo(client, db, session_id):
    client.post(
        "/CreateTodo", json={"name": "milk", "description": "d"}, headers=auth(session_id)
    )
    (todo_id,) = todo_ids(db)
    resp = client.get(f"/GetTodo?id={todo_id}", headers=auth(session_id))
    assert resp.status_code == HTTPStatus.OK
    body = resp.get_json()
    assert (body["name"], body["description"], body["is_completed"]) == ("milk", "d", False)


def test_get_todo_errors(client, session_id):
    missing = client.get("/GetTodo", headers=auth(session_id))
    assert missing.status_code == HTTPStatus.BAD_REQUEST
    assert missing.data == b"Missing todo ID\n"
    unknown = client.get("/GetTodo?id=nope", headers=auth(session_id))
    assert unknown.status_code == HTTPStatus.NOT_FOUND
    assert unknown.data == b"Todo not found\n"


def test_update_todo(client, db, user_id, session_id):
    client.post("/CreateTodo", json={"name": "old"}, headers=auth(session_id))
    (todo_id,) = todo_ids(db)
    resp = client.put(
        "/UpdateTodo",
        json={"id": todo_id, "name": "new", "description": "x", "is_completed": True},
        headers=auth(session_id),
    )
    assert resp.status_code == HTTPStatus.OK
    assert resp.data == b"Todo updated successfully"
    todo = store.get_todo_by_id(db, todo_id, user_id)
    assert (todo.name, todo.description, todo.is_completed) == ("new", "x", True)


def test_update_todo_bad_body(client, session_id):
    resp = client.put(
        "/UpdateTodo", json={"is_completed": "yes"}, headers=auth(session_id)
    )
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.data == b"Invalid request body\n"


def test_delete_todo_archives_once(client, db, session_id):
    client.post("/CreateTodo", json={"name": "milk"}, headers=auth(session_id))
    (todo_id,) = todo_ids(db)
    first = client.delete(f"/DeleteTodo?id={todo_id}", headers=auth(session_id))
    assert first.status_code == HTTPStatus.OK
    assert first.data == b"Todo archived"
    second = client.delete(f"/DeleteTodo?id={todo_id}", headers=auth(session_id))
    assert second.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert second.data == b"Failed to archive todo\n"
    gone = client.get(f"/GetTodo?id={todo_id}", headers=auth(session_id))
    assert gone.status_code == HTTPStatus.NOT_FOUND


def test_delete_todo_missing_id(client, session_id):
    resp = client.delete("/DeleteTodo", headers=auth(session_id))
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.data == b"Missing todo ID\n"