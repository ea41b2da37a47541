"""Unit-of-work abstraction around the state store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from pushstate.domain.ports.persistence import ResourceRecordRepository


@runtime_checkable
class StateUnitOfWork(Protocol):
    @property
    def records(self) -> ResourceRecordRepository: ...

    def __enter__(self) -> StateUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
