"""SQLAlchemy adapter package for the pushstate state store."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    managed_resource_table,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyResourceRecordRepository
from .unit_of_work import SqlAlchemyStateUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyResourceRecordRepository",
    "SqlAlchemyStateUnitOfWork",
    "StartupError",
    "create_all_tables",
    "managed_resource_table",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
