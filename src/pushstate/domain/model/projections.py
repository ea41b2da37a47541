"""Read-only projections republished on every read."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class SoundCatalog:
    sounds: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self.sounds))

    def __contains__(self, key: object) -> bool:
        return key in self.sounds


@dataclass(frozen=True, slots=True, kw_only=True)
class RecipientValidation:
    recipient: str
    is_group: bool
    devices: tuple[str, ...] = ()
    licenses: tuple[str, ...] = ()
