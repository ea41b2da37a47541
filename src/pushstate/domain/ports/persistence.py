"""Ports for persisting managed-entity state records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pushstate.domain.model import ResourceRecord


@runtime_checkable
class ResourceRecordRepository(Protocol):
    """One record per managed entity, keyed by its manifest address."""

    def get(self, address: str) -> ResourceRecord | None: ...

    def list_all(self) -> Sequence[ResourceRecord]: ...

    def add(self, record: ResourceRecord) -> None: ...

    def remove(self, record: ResourceRecord) -> None: ...
