"""SQLAlchemy engine and session management for the export store."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from youtube_exporter.domain.exceptions import PersistenceError
from youtube_exporter.infrastructure.persistence.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine and session factory of the export store.

    Example:
        ```python
        db = Database("sqlite:///data/exporter.db")
        with db.session("load sources") as session:
            session.execute(text("SELECT 1"))
        ```
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """
        Initialize the engine.

        Args:
            url: SQLAlchemy database URL
            echo: Log every SQL statement
        """
        self.url = url
        self._engine = self._create_engine(url, echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        parsed = make_url(url)
        if parsed.get_backend_name() != "sqlite":
            return create_engine(url, echo=echo, pool_pre_ping=True)

        database = parsed.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    @property
    def engine(self) -> Engine:
        """Get the underlying engine."""
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def create_schema(self) -> None:
        """Create any missing tables."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError("schema creation", e) from e
        logger.info(f"Export store schema ready at {self._engine.url!r}")

    @contextmanager
    def session(self, operation: str = "database access") -> Generator[Session, None, None]:
        """
        Provide a transactional session scope.

        Commits on success, rolls back on exception and always closes the
        session. SQLAlchemy errors surface as PersistenceError.

        Args:
            operation: Short description used in error messages
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Persistence failure during {operation}: {e}")
            raise PersistenceError(operation, e) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def insert_ignoring_conflicts(self, model: type[Base], **values: Any) -> Any:
        """
        Build an INSERT that silently does nothing when a unique key already exists.

        Returns:
            An executable insert statement
        """
        if self.dialect_name == "postgresql":
            return postgresql.insert(model).values(**values).on_conflict_do_nothing()
        if self.dialect_name == "sqlite":
            return sqlite.insert(model).values(**values).on_conflict_do_nothing()
        raise PersistenceError(f"conflict-free insert on unsupported dialect {self.dialect_name}")

    def check_connection(self) -> bool:
        """
        Test database connectivity with a simple query.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.session("connection check") as session:
                session.execute(text("SELECT 1"))
            return True
        except PersistenceError:
            return False

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
