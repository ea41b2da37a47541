"""SQLAlchemy-backed unit of work for the state store.

Call :func:`startup` once per process (tests pass their own engine), then open
one :class:`SqlAlchemyStateUnitOfWork` per apply.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pushstate.config.storage import get_database_config

from .mappings import create_all_tables, start_mappers
from .repositories import SqlAlchemyResourceRecordRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from pushstate.domain.ports import StateUnitOfWork


class StartupError(RuntimeError):
    """The state store was used before :func:`startup` or configured twice."""


@dataclass(frozen=True, slots=True)
class _StateStore:
    engine: Engine
    sessions: sessionmaker[Session]


_store: _StateStore | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the state store to ``engine`` (or a new one) and create its table."""

    global _store  # noqa: PLW0603
    if _store is not None and not force:
        raise StartupError("State store already started. Pass force=True to reconfigure.")

    if engine is None and database_uri is not None:
        engine = create_engine(database_uri, future=True)
    elif engine is None:
        database = get_database_config()
        engine = create_engine(database.uri, echo=database.echo, future=True)
    start_mappers()
    create_all_tables(engine)
    _store = _StateStore(engine, sessionmaker(bind=engine, expire_on_commit=False))


def is_started() -> bool:
    return _store is not None


def shutdown() -> None:
    """Dispose the engine and forget it (primarily for tests)."""

    global _store  # noqa: PLW0603
    if _store is not None:
        _store.engine.dispose()
    _store = None


class SqlAlchemyStateUnitOfWork:
    """One session over the state records; rolled back unless committed."""

    def __init__(self) -> None:
        if _store is None:
            raise StartupError(
                "State store not started. Call pushstate.adapters.sqlalchemy.startup() first."
            )
        self._sessions = _store.sessions
        self._session: Session | None = None
        self._records: SqlAlchemyResourceRecordRepository | None = None

    def __enter__(self) -> SqlAlchemyStateUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._records = SqlAlchemyResourceRecordRepository(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._records = None
        return False

    def _open_session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    def commit(self) -> None:
        self._open_session().commit()

    def rollback(self) -> None:
        self._open_session().rollback()

    @property
    def records(self) -> SqlAlchemyResourceRecordRepository:
        if self._records is None:
            raise StartupError("Unit of work is not open")
        return self._records


if TYPE_CHECKING:
    _uow_check: StateUnitOfWork = SqlAlchemyStateUnitOfWork()
