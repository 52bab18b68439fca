"""Shared FastAPI dependencies (DB sessions)."""
from __future__ import annotations

from typing import Generator, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from coin_sync.db.db_conn import DbConn


def get_db(request: Request) -> Generator[Session, None, None]:
    """Provide a SQLAlchemy session per-request from the app-owned pool."""
    db: Optional[DbConn] = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")

    session = db.get_session()
    try:
        yield session
    finally:
        session.close()
