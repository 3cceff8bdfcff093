import logging
from contextlib import contextmanager
from collections.abc import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from program_guide.models import Base
from program_guide.utils.logging_helpers import sanitize_url_for_logging

logger = logging.getLogger(__name__)


def _configure_sqlite(dbapi_conn, _) -> None:
    """Configure SQLite connection parameters"""
    cursor = dbapi_conn.cursor()
    # Episode rows cascade with their program
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create session factory from engine"""
    return sessionmaker(
        engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


class Database:
    """Owns the engine and session factory for one sync run."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        logger.info(f"Opening database at {sanitize_url_for_logging(url)}")
        self.engine = create_engine(url, echo=echo, pool_pre_ping=True)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _configure_sqlite)
        self._session_factory = _create_session_factory(self.engine)

    def check_connection(self) -> None:
        """Open and release one connection so connectivity problems surface early"""
        with self.engine.connect():
            pass

    def create_schema(self) -> None:
        """Create missing tables; existing tables are left untouched"""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema ready")

    def close(self) -> None:
        """Close database connections"""
        self.engine.dispose()
        logger.info("Database connections closed")

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a session wrapped in `session.begin()` for auto commit/rollback.

        Each scope is its own transaction; callers that need several
        statements to commit together must issue them in one scope.
        """
        with self._session_factory() as session:
            with session.begin():
                yield session
