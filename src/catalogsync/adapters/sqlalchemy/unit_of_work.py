"""SQLAlchemy-backed unit of work for channel distribution.

``startup`` binds a process-wide engine once (running migrations on the way);
every unit of work then opens its own session from that engine.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Literal, Self

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy.mappings import start_mappers
from catalogsync.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from catalogsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCatalogStore,
    SqlAlchemyChannelDirectory,
)
from catalogsync.config import get_database_config
from catalogsync.domain.ports.unit_of_work import (
    DistributionRepositories,
    RepositoryCollection,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before ``startup`` or a unit of work is misused."""


class _Database:
    """Engine and session factory shared by every unit of work in the process."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self._sessions = None

    def sessions(self) -> sessionmaker[Session]:
        if self.engine is None:
            raise StartupError(
                "SQLAlchemy adapter not started; call "
                "catalogsync.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        if self._sessions is None:
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions


_DATABASE = _Database()


def _sqlite_connect(dbapi_connection: Any, _connection_record: object) -> None:
    # hand transaction control to SQLAlchemy so SAVEPOINTs nest properly
    dbapi_connection.isolation_level = None


def _sqlite_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """Make pysqlite honour SAVEPOINT semantics; a no-op for other dialects."""

    if engine.dialect.name != "sqlite":
        return engine
    if not event.contains(engine, "connect", _sqlite_connect):
        event.listen(engine, "connect", _sqlite_connect)
    if not event.contains(engine, "begin", _sqlite_begin):
        event.listen(engine, "begin", _sqlite_begin)
    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the adapter to ``engine`` (or one built from configuration) and migrate it."""

    if _DATABASE.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind it")

    resolved = enable_sqlite_savepoints(
        engine or create_engine(database_uri or get_database_config().uri)
    )
    start_mappers()
    upgrade_head(engine=resolved)
    log.info("Database ready at schema revision %s", current_revision(resolved))

    _DATABASE.bind(resolved)
    return resolved


def configured_engine() -> Engine | None:
    return _DATABASE.engine


def is_started() -> bool:
    return _DATABASE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it (primarily for tests)."""

    if _DATABASE.engine is not None:
        _DATABASE.engine.dispose()
    _DATABASE.bind(None)


class SqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block; work not committed inside the block is discarded."""

    def __init__(self) -> None:
        self._sessions = _DATABASE.sessions()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _repositories_for(self, session: Session) -> TRepositories: ...

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open; use it as a context manager")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open; use it as a context manager")
        return self._repositories

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = self._repositories_for(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SqlAlchemyDistributionUnitOfWork(SqlAlchemyUnitOfWork[DistributionRepositories]):
    """Unit of work exposing the catalog store and channel directory."""

    def _repositories_for(self, session: Session) -> DistributionRepositories:
        return DistributionRepositories(
            catalog=SqlAlchemyCatalogStore(session),
            channels=SqlAlchemyChannelDirectory(session),
        )


if TYPE_CHECKING:
    from catalogsync.domain.ports.unit_of_work import DistributionUnitOfWork

    _uow_check: DistributionUnitOfWork = SqlAlchemyDistributionUnitOfWork()
