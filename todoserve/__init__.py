"""A JSON HTTP service for per-user todo lists with session-based login, stored in SQLite."""

__version__ = "0.1.0"