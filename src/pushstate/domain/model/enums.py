"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class Priority(IntEnum):
    LOWEST = -2
    LOW = -1
    NORMAL = 0
    HIGH = 1
    EMERGENCY = 2


class Mutability(StrEnum):
    """How a change to one field is converged on the remote side."""

    IMMUTABLE = "immutable"  # forces replace
    MUTABLE = "mutable"  # applied in place


class ResourceKind(StrEnum):
    NOTIFICATION = "notification"
    MEMBERSHIP = "membership"
