"""FastAPI dependencies shared by the API routers."""

from __future__ import annotations

from ..db import SqlRepository, get_session


def get_repository() -> SqlRepository:
    """Repository bound to the sessionmaker created at startup."""
    return SqlRepository(get_session())
