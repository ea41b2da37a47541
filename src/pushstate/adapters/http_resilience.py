"""Rate-limited, retrying async HTTP client shared by remote adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from pushstate.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

__all__ = [
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    """Translate a :class:`RetryPolicy` into the transport's retry schedule."""

    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.allowed_methods),
        status_forcelist=sorted(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


async def _log_response(response: httpx.Response) -> None:
    # Path only: query strings carry credentials.
    request = response.request
    log.debug("HTTP %s %s -> %s", request.method, request.url.path, response.status_code)


class ResilientClient:
    """``httpx.AsyncClient`` behind a client-side rate limit and a retry transport.

    Only methods listed in the policy are retried, so form posts that create
    something remotely go out exactly once per call.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        ratelimit = config.ratelimit
        self._limiter = (
            AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds) if ratelimit else None
        )
        self._client = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            transport=RetryTransport(retry=build_retry(config.retry)),
            headers=dict(config.default_headers or {}),
            event_hooks={"response": [_log_response, *config.response_hooks]},
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a query-string GET to an absolute ``url``."""

        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)

    async def post(self, url: str, *, data: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a form-encoded POST to an absolute ``url``."""

        if self._limiter is None:
            return await self._client.post(url, data=data)
        async with self._limiter:
            return await self._client.post(url, data=data)
