"""Database utilities exposed for external runtimes."""

from .repo import SqlRepository, close_db, get_session, init_db

__all__ = ["SqlRepository", "close_db", "get_session", "init_db"]
