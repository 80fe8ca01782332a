from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session bound to the app's run store."""
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
