"""Database connection and session management.

One engine per process; every unit of work opens its own session via
``get_session()``, which commits on success and rolls back on error.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the SQLAlchemy engine and hands out transactional sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url

        engine_kwargs = {"echo": echo, "future": True}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # Share the single in-memory database across threads
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )
        logger.info(f"DatabaseManager initialized ({self.engine.dialect.name})")

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Yield a session that commits on exit and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables (development and tests; production uses alembic)."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables ensured")

    def dispose(self) -> None:
        self.engine.dispose()


def wait_for_db(
    db_manager: DatabaseManager,
    max_retries: int = 10,
    delay_seconds: float = 2.0,
) -> bool:
    """Block until the database answers ``SELECT 1`` or retries run out."""
    for attempt in range(1, max_retries + 1):
        try:
            with db_manager.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is available")
            return True
        except OperationalError as e:
            logger.warning(
                f"Database not ready (attempt {attempt}/{max_retries}): {e}"
            )
            time.sleep(delay_seconds)
    logger.error(f"Database unavailable after {max_retries} attempts")
    return False
