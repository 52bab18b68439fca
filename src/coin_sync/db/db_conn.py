"""Database connection helper using SQLAlchemy and Alembic.

One ``DbConn`` is built at startup and shared by the sync engine and the
read endpoint; the pool serializes nothing itself, the database does.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, func, inspect, select, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from coin_sync.config import get_database_url, get_db_pool_config
from coin_sync.db.base import Base
from coin_sync.db.poco.coin_market import CoinMarket


class DbConn:
    """Owned handle to the connection pool.

    Usage:
        db = DbConn()
        with db.session_scope() as s:
            CoinMarketsRepo().upsert_many(s, rows)
    """

    def __init__(
        self,
        db_url: Optional[str] = None,
        echo: bool = False,
        connect_args: Optional[Dict[str, Any]] = None,
    ) -> None:
        url = db_url or get_database_url()
        if not url:
            raise ValueError("Database URL not configured. Set DATABASE_URL or DB_* in resources/.env.")

        engine_kwargs: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True, "connect_args": connect_args or {}}
        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs.update(get_db_pool_config())
        self._engine: Engine = create_engine(url, **engine_kwargs)
        self._Session = sessionmaker(bind=self._engine, autoflush=False, autocommit=False, future=True)

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        return self._Session()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transaction per block: commit on exit, rollback on any exception."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create missing tables without Alembic (tests, local SQLite)."""
        Base.metadata.create_all(self._engine)

    def has_coin_table(self) -> bool:
        return inspect(self._engine).has_table(CoinMarket.__tablename__)

    def count_coins(self) -> int:
        with self.session_scope() as session:
            return int(session.scalar(select(func.count()).select_from(CoinMarket)) or 0)

    def test_connection(self) -> bool:
        """Try connecting and executing a trivial statement."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def get_alembic_revision(self) -> Optional[str]:
        """Return current Alembic revision, or None when the table is missing."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1")).first()
                return row[0] if row else None
        except SQLAlchemyError:
            return None

    def dispose(self) -> None:
        self._engine.dispose()
