"""Read-only projections: fetched fresh on every read and never persisted."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ReconciliationError

if TYPE_CHECKING:
    from .model import RecipientValidation, SoundCatalog
    from .ports import CatalogGateway

log = getLogger(__name__)


async def fetch_sound_catalog(
    gateway: CatalogGateway, *, api_token: str | None = None
) -> SoundCatalog:
    try:
        catalog = await gateway.list_sounds(api_token=api_token)
    except ReconciliationError as exc:
        raise exc.with_context(operation="list_sounds")
    log.debug("Fetched %s sounds", len(catalog.sounds))
    return catalog


async def validate_recipient(
    gateway: CatalogGateway,
    user: str,
    *,
    device: str | None = None,
    api_token: str | None = None,
) -> RecipientValidation:
    """Ask the remote whether ``user`` (optionally with ``device``) can receive notifications.

    An unknown recipient is reported as a :class:`RemoteRejection`, not a falsy result.
    """

    try:
        return await gateway.validate_user(user, device=device, api_token=api_token)
    except ReconciliationError as exc:
        raise exc.with_context(operation="validate_user", resource_id=user)
