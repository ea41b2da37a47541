"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from pushstate.domain.model import ResourceRecord
from pushstate.domain.ports import ResourceRecordRepository

from .mappings import managed_resource_table

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyResourceRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, address: str) -> ResourceRecord | None:
        return self.session.get(ResourceRecord, address)

    def list_all(self) -> list[ResourceRecord]:
        stmt = select(ResourceRecord).order_by(managed_resource_table.c.address)
        return list(self.session.execute(stmt).scalars())

    def add(self, record: ResourceRecord) -> None:
        """Insert ``record`` or overwrite the stored one with the same address."""

        record.updated_at = datetime.now(UTC)
        existing = self.get(record.address)
        if existing is None:
            self.session.add(record)
            return
        if existing is record:
            return
        existing.kind = record.kind
        existing.resource_id = record.resource_id
        existing.attributes = dict(record.attributes)
        existing.updated_at = record.updated_at

    def remove(self, record: ResourceRecord) -> None:
        existing = self.get(record.address)
        if existing is not None:
            self.session.delete(existing)


if TYPE_CHECKING:
    _repository_check: ResourceRecordRepository = SqlAlchemyResourceRecordRepository(
        session=...  # type: ignore[arg-type]
    )
