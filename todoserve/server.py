"""Routing table and the command that starts the server."""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
from collections.abc import Sequence
from http import HTTPStatus

from flask import Flask, Response

from todoserve import handlers
from todoserve.database import connect_and_migrate

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8000
DEFAULT_DATABASE = "todo.db"

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]

_ROUTES = (
    ("/register", handlers.register_handler, "POST"),
    ("/login", handlers.login_handler, "POST"),
    ("/logout", handlers.logout_handler, "POST"),
    ("/CreateTodo", handlers.create_todo_handler, "POST"),
    ("/UpdateTodo", handlers.update_todo_handler, "PUT"),
    ("/GetTodo", handlers.get_todo_handler, "GET"),
    ("/GetAllTodos", handlers.get_all_todos_handler, "GET"),
    ("/DeleteTodo", handlers.delete_todo_handler, "DELETE"),
)


def _health() -> Response:
    return handlers.json_response({"ok": True})


def setup_routes(db: sqlite3.Connection) -> Flask:
    """Build the application serving the API from *db*."""
    app = Flask(__name__)
    app.config[handlers.DB_CONFIG_KEY] = db
    routes = (*_ROUTES, ("/health", _health, None))
    for path, view, method in routes:
        methods = [method] if method else _ALL_METHODS
        app.add_url_rule(path, view_func=view, methods=methods, provide_automatic_options=False)
    app.register_error_handler(
        HTTPStatus.NOT_FOUND,
        lambda _error: Response(
            "404 page not found\n",
            status=HTTPStatus.NOT_FOUND,
            content_type="text/plain; charset=utf-8",
        ),
    )
    app.register_error_handler(
        HTTPStatus.METHOD_NOT_ALLOWED,
        lambda _error: Response("", status=HTTPStatus.METHOD_NOT_ALLOWED),
    )
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Open and migrate the database, then serve the API."""
    parser = argparse.ArgumentParser(prog="todoserve", description="Serve the todo API.")
    parser.add_argument("--database", default=os.environ.get("DB_NAME") or DEFAULT_DATABASE)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        db = connect_and_migrate(args.database)
    except Exception as exc:
        raise RuntimeError(f"Failed to initialize and migrate database with error: {exc}") from exc
    logger.info("migration successful!!")

    app = setup_routes(db)
    logger.info("Server running on http://localhost:%d", args.port)
    try:
        app.run(host="0.0.0.0", port=args.port)
    finally:
        db.close()
    return 0