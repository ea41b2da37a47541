"""Failure kinds surfaced by reconciliation.

Every error carries the operation that was attempted and, once known, the
identifier of the entity it was attempted for. Nothing here is retried by the
domain layer; callers decide whether to retry, alert, or abandon.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ReconciliationError(RuntimeError):
    """Base class for every failure raised while converging an entity."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.resource_id = resource_id

    def with_context(
        self,
        *,
        operation: str | None = None,
        resource_id: str | None = None,
    ) -> ReconciliationError:
        """Fill in context that was unknown where the error was raised."""

        if self.operation is None:
            self.operation = operation
        if self.resource_id is None:
            self.resource_id = resource_id
        return self

    def __str__(self) -> str:
        message = super().__str__()
        context = [
            f"{name}={value}"
            for name, value in (("resource", self.resource_id), ("operation", self.operation))
            if value
        ]
        if not context:
            return message
        return f"{message} ({', '.join(context)})"


class ValidationError(ReconciliationError):
    """Locally detectable contract violation; never dispatched to the remote."""

    def __init__(
        self,
        issues: Sequence[str],
        *,
        operation: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        self.issues = tuple(issues)
        super().__init__(
            "; ".join(self.issues) or "invalid desired state",
            operation=operation,
            resource_id=resource_id,
        )


class RemoteRejection(ReconciliationError):
    """The remote answered with a non-success status and its own diagnostics."""

    def __init__(
        self,
        messages: Sequence[str],
        *,
        operation: str | None = None,
        resource_id: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.messages = tuple(messages)
        self.status_code = status_code
        self.request_id = request_id
        detail = "; ".join(self.messages) or "no diagnostic given"
        super().__init__(
            f"remote rejected request: {detail}",
            operation=operation,
            resource_id=resource_id,
        )


class TransportFailure(ReconciliationError):
    """The round trip to the remote could not be completed."""


class DriftReadError(ReconciliationError):
    """Reading current remote state failed; distinct from the entity being absent."""


class PartialSequenceFailure(ReconciliationError):
    """A later step of a multi-step operation failed after earlier steps succeeded.

    ``partial_state`` describes what now exists remotely so the caller does not
    assume nothing happened.
    """

    def __init__(
        self,
        *,
        completed_steps: Sequence[str],
        failed_step: str,
        cause: ReconciliationError,
        partial_state: object | None = None,
        operation: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        self.completed_steps = tuple(completed_steps)
        self.failed_step = failed_step
        self.cause = cause
        self.partial_state = partial_state
        done = ", ".join(self.completed_steps)
        super().__init__(
            f"step {failed_step!r} failed after completing [{done}]: {cause}",
            operation=operation,
            resource_id=resource_id,
        )
