"""Declarative per-field mutability tables."""

from __future__ import annotations

from collections.abc import Mapping

from .enums import Mutability

type FieldTable = Mapping[str, Mutability]


def immutable_fields(table: FieldTable) -> tuple[str, ...]:
    return tuple(name for name, kind in table.items() if kind is Mutability.IMMUTABLE)


def mutable_fields(table: FieldTable) -> tuple[str, ...]:
    return tuple(name for name, kind in table.items() if kind is Mutability.MUTABLE)
