# todoserve

A small HTTP service that keeps a todo list for each registered user.
Users register with a name, an e-mail address and a password, log in to
receive a session identifier, and then send that identifier as a bearer
token to create, read, update and archive their todos. Request bodies and
successful data responses are JSON; errors are answered with a plain-text
message. Everything is stored in a single SQLite database file.

## Installation

```
pip install .
```

To run the test suite, install the test extra and run pytest:

```
pip install ".[test]"
pytest
```

## Running the server

```
todoserve
```

Options:

- `--database PATH` – the SQLite database file. Defaults to the value of
  the `DB_NAME` environment variable, or `todo.db` if that is unset.
- `--port N` – the port to listen on, 8000 by default.

On start-up the database is opened and its schema (tables `users`,
`todos` and `user_session`) is created or brought up to date. The API is
then served with Flask's built-in server on all interfaces.

## Endpoints

| Method | Path           | Purpose                                   |
|--------|----------------|-------------------------------------------|
| POST   | `/register`    | Create a user                             |
| POST   | `/login`       | Log in and receive a session identifier   |
| POST   | `/logout`      | End the current session                   |
| POST   | `/CreateTodo`  | Add a todo                                |
| PUT    | `/UpdateTodo`  | Change a todo's name, description, status |
| GET    | `/GetTodo`     | Fetch one todo, `?id=<todo id>`           |
| GET    | `/GetAllTodos` | Fetch all of the user's active todos      |
| DELETE | `/DeleteTodo`  | Archive a todo, `?id=<todo id>`           |
| any    | `/health`      | Returns `{"ok":true}`                     |

Unknown paths are answered with 404, and a known path called with another
method with 405.

Registering answers 201 with the user as JSON; the password is stored as a
bcrypt hash and never included in a response:

```
POST /register
{"name": "Alice", "email": "alice@example.com", "password": "password"}
```

Logging in returns the session identifier:

```
POST /login
{"email": "alice@example.com", "password": "password"}

200 {"message":"Login successful!","session_id":"..."}
```

An unknown e-mail address or a wrong password is answered with 401.
Sessions are valid for 24 hours.

Every todo endpoint and `/logout` need the session in the
`Authorization` header:

```
Authorization: Bearer token
```

where `token` is the `session_id` received at login. A missing or
malformed header, or a session that has expired or been logged out, is
answered with 401. `/logout` accepts only exactly `Bearer` followed by a
single space and the identifier.

Creating and updating todos:

```
POST /CreateTodo
{"name": "Groceries", "description": "Milk and bread"}

PUT /UpdateTodo
{"id": "<todo id>", "name": "Groceries", "description": "Milk", "is_completed": true}
```

`/CreateTodo` answers 201 with the name and description it stored.
`/GetTodo` and `/GetAllTodos` return each todo's `name`, `description` and
`is_completed`; the other fields of a todo are present but left empty.
When a user has no active todos, `/GetAllTodos` answers with `null`.
Deleting a todo archives it; archived todos no longer appear in
`/GetTodo` or `/GetAllTodos`.

## Using it from Python

The application can be built and served from your own code:

```python
from todoserve.database import connect_and_migrate
from todoserve.server import setup_routes

db = connect_and_migrate("todo.db")
app = setup_routes(db)
app.run(port=8000)
```

`setup_routes` returns a Flask application, so its test client works too.
The functions in `todoserve.store` work on the same connection directly,
for example `validate_session(db, session_id)` or
`get_all_todos(db, user_id)`; they raise `StoreError`, or its subclasses
`SessionError` and `NotFoundError`, when an operation fails. The data
objects they exchange (`User`, `UserSession`, `Todo`, `CreateTodo`,
`UpdateTodo`, `UserRequest`) live in `todoserve.models`.

## What it does not do

- The API never hands out a todo's identifier: `/CreateTodo` does not
  return it and the listing endpoints leave it empty. `/UpdateTodo`,
  `/GetTodo` and `/DeleteTodo` therefore need an identifier read from the
  `todos` table by other means.
- `/UpdateTodo` reports success even when no todo of that user has the
  given identifier.
- Sessions cannot be renewed; after 24 hours the user must log in again.
- The server is Flask's development server, without TLS.