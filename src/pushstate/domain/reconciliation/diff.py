"""Generic replace-versus-update classification driven by a field table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pushstate.domain.model import Mutability

from .contracts import Action, ChangePlan

if TYPE_CHECKING:
    from pushstate.domain.model import FieldTable


def changed_fields(desired: object, prior: object, fields: FieldTable) -> tuple[str, ...]:
    return tuple(name for name in fields if getattr(desired, name) != getattr(prior, name))


def plan_change(desired: object | None, prior: object | None, fields: FieldTable) -> ChangePlan:
    """Decide how ``prior`` converges to ``desired``.

    ``desired`` and ``prior`` are specs exposing every field named in ``fields``;
    ``None`` means the entity is not wanted, or not known to exist, respectively.
    Any change to an immutable field dominates and forces a replace.
    """

    if desired is None:
        return ChangePlan(action=Action.NOOP if prior is None else Action.DELETE)
    if prior is None:
        return ChangePlan(action=Action.CREATE)

    changed = changed_fields(desired, prior, fields)
    forcing = tuple(name for name in changed if fields[name] is Mutability.IMMUTABLE)
    if forcing:
        return ChangePlan(action=Action.REPLACE, changed_fields=changed, replace_fields=forcing)
    if changed:
        return ChangePlan(action=Action.UPDATE, changed_fields=changed)
    return ChangePlan(action=Action.NOOP)
