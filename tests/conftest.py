from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from pushstate.adapters.sqlalchemy import start_mappers
from pushstate.adapters.sqlalchemy.mappings import create_all_tables
from pushstate.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyStateUnitOfWork,
    shutdown,
    startup,
)
from pushstate.domain.model import GroupMembership, NotificationRequest, Priority
from tests.helpers.gateway import FakeGateway

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def membership() -> GroupMembership:
    return GroupMembership(group="gGroupKey", user="uUserKey", memo="On call")


@pytest.fixture
def notification() -> NotificationRequest:
    return NotificationRequest(recipient="uUserKey", message="Deploy finished", title="CI")


@pytest.fixture
def emergency() -> NotificationRequest:
    return NotificationRequest(
        recipient="uUserKey",
        message="Database down",
        priority=Priority.EMERGENCY,
        retry=60,
        expire=3600,
        tags=("db",),
    )


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyStateUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyStateUnitOfWork:
        return SqlAlchemyStateUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
