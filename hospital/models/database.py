"""
Database connection lifecycle.

One DatabaseManager owns the single live connection of the process. Every
repository borrows that connection; only the manager ever closes it.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Connection, Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class DatabaseConnectionError(ConnectionError):
    """Raised when the database cannot be reached or is not connected."""


class DatabaseManager:
    """
    Owns one engine and one connection.

    Usage:
        with DatabaseManager(url, user, password) as connection:
            doctors = DoctorRepository(connection).list_all()
    """

    def __init__(
        self,
        url: str,
        user: str | None = None,
        password: str | None = None,
        **engine_options: Any,
    ):
        self.url = url
        self.user = user
        self.password = password
        self.engine_options = engine_options
        self._engine: Engine | None = None
        self._connection: Connection | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None and not self._connection.closed

    @property
    def connection(self) -> Connection:
        if not self.connected:
            raise DatabaseConnectionError("Database is not connected")
        return self._connection  # type: ignore[return-value]

    def _build_url(self):
        url = make_url(self.url)
        if self.user:
            url = url.set(username=self.user)
        if self.password:
            url = url.set(password=self.password)
        return url

    def connect(self) -> Connection:
        """Open the connection. Failure is fatal to the caller, no retry."""
        if self.connected:
            return self._connection  # type: ignore[return-value]
        try:
            url = self._build_url()
            options = dict(self.engine_options)
            if url.get_backend_name() == "sqlite":
                # The one connection is shared with the web server's worker threads.
                options.setdefault("connect_args", {"check_same_thread": False})
            # Each statement commits on its own; no multi-statement transactions.
            self._engine = create_engine(url, isolation_level="AUTOCOMMIT", **options)
            self._connection = self._engine.connect()
        except (ArgumentError, SQLAlchemyError) as exc:
            self._dispose()
            logger.error("Error connecting to the database: %s", exc)
            raise DatabaseConnectionError("Error connecting to the database") from exc

        logger.info("Database connected successfully (%s)", self._engine.url.render_as_string())
        return self._connection

    def init_schema(self) -> None:
        """Create any of the six tables that do not exist yet."""
        # Registers the table classes on Base.metadata.
        from hospital.models import tables  # noqa: F401

        Base.metadata.create_all(bind=self.connection)

    def close(self) -> None:
        """Close the connection. Safe to call repeatedly or before connect()."""
        if self._connection is None and self._engine is None:
            return
        try:
            if self._connection is not None and not self._connection.closed:
                self._connection.close()
                logger.info("Database connection closed")
        except SQLAlchemyError:
            logger.exception("Error while closing the database connection")
        finally:
            self._dispose()

    def _dispose(self) -> None:
        self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> Connection:
        try:
            return self.connect()
        except DatabaseConnectionError:
            self.close()
            raise

    def __exit__(self, *exc_info) -> None:
        self.close()
