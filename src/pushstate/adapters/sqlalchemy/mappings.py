"""SQLAlchemy mapping metadata for the managed-resource state store."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from pushstate.domain.model import ResourceKind, ResourceRecord

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timestamps are stored and returned as aware UTC; SQLite drops the offset."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return _as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return _as_utc(value)


class JSONAttributes(TypeDecorator[dict[str, Any]]):
    """Attribute mapping stored as a JSON object in a text column."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: dict[str, Any] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, Any]:
        _ = dialect
        if value is None:
            return {}
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return {}
        return cast(dict[str, Any], loaded)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}

managed_resource_table = Table(
    "managed_resource",
    mapper_registry.metadata,
    Column("address", String(255), primary_key=True),
    Column(
        "kind",
        Enum(
            ResourceKind,
            name="resource_kind",
            native_enum=False,
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=False,
    ),
    Column("resource_id", String(255), nullable=False),
    Column("attributes", JSONAttributes(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_managed_resource_kind_resource_id", "kind", "resource_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Map ResourceRecord imperatively; cached so repeated startups are harmless."""

    log.info("Mapping ResourceRecord onto %s", managed_resource_table.name)
    mapper_registry.map_imperatively(ResourceRecord, managed_resource_table)
    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create the state store table if it does not exist."""

    log.info("Ensuring state store schema on %s", engine.url.render_as_string(hide_password=True))
    mapper_registry.metadata.create_all(engine)
