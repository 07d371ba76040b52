import logging
from collections.abc import Generator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from customer_registry.errors import (
    NotConnectedError,
    RegistryError,
    SchemaError,
    ShutdownError,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Owns the engine for one database and its open/initialize/close lifecycle.

    A single Store is created by the application entry point and handed to
    request handlers through ``app.state``; nothing in the package keeps a
    module-level engine.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        if self._engine is not None:
            return

        url = make_url(self.url)
        engine_kwargs: dict[str, object] = {"echo": self.echo}
        is_sqlite = url.get_backend_name() == "sqlite"
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # In-memory databases live only as long as their one connection
                engine_kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(self.url, **engine_kwargs)
            if is_sqlite:
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            with engine.connect():
                pass
        except SQLAlchemyError as e:
            logger.error("Error opening database %s: %s", url.render_as_string(hide_password=True), e)
            raise StoreConnectionError(f"Could not open database: {e}") from e

        self._engine = engine
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Connected to database %s", url.render_as_string(hide_password=True))

    def initialize(self) -> None:
        """Create missing tables and indexes.

        Each table is created in its own DDL step so one failure does not stop
        the others; failures are logged and reported together as SchemaError.
        """
        # Import all models so Base.metadata knows about them
        import customer_registry.models.address  # noqa: F401
        import customer_registry.models.customer  # noqa: F401

        engine = self.get_connection()
        failed = []
        for table in Base.metadata.sorted_tables:
            try:
                Base.metadata.create_all(bind=engine, tables=[table], checkfirst=True)
            except SQLAlchemyError as e:
                logger.error("Error creating table %s: %s", table.name, e)
                failed.append(table.name)

        if failed:
            raise SchemaError(f"Could not create tables: {', '.join(failed)}")

    def close(self) -> None:
        if self._engine is None:
            return
        engine = self._engine
        self._engine = None
        self._sessionmaker = None
        try:
            engine.dispose()
        except SQLAlchemyError as e:
            logger.error("Error closing database: %s", e)
            raise ShutdownError(f"Error closing database: {e}") from e
        logger.info("Database connection closed")

    def get_connection(self) -> Engine:
        if self._engine is None:
            raise NotConnectedError()
        return self._engine

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise NotConnectedError()
        return self._sessionmaker()


def get_db(request: Request):
    db = request.app.state.store.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session, action: str) -> Generator[None, None, None]:
    """Roll back and re-raise unclassified database failures as StoreError."""
    try:
        yield
    except RegistryError:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error while %s: %s", action, e, exc_info=True)
        raise StoreError(f"Database error while {action}") from e
