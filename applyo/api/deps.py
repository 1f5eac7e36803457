"""FastAPI dependencies."""

from typing import Iterator

from sqlalchemy.orm import Session

from applyo.database import get_db_manager


def get_db() -> Iterator[Session]:
    """Request-scoped session; commits on success, rolls back on error."""
    with get_db_manager().session_scope() as session:
        yield session
