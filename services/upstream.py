"""Upstream fetch with bounded redirects, timeout and single fallback."""

import logging
from dataclasses import replace

import httpx

from core.config import UpstreamSettings
from core.content import resolve_content_type
from core.exceptions import (
    BothFailedError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamRedirectError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from core.protocols import RequestLogger
from core.request_types import RequestDescriptor, SourceEntry, UpstreamOutcome

logger = logging.getLogger(__name__)


def build_client(
    settings: UpstreamSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the pooled client shared by all requests."""
    limits = httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_keepalive_connections,
    )
    return httpx.AsyncClient(
        timeout=settings.timeout,
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        limits=limits,
        transport=transport,
    )


class FetchExecutor:
    """Perform upstream GETs described by request descriptors."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: RequestLogger,
        settings: UpstreamSettings,
    ) -> None:
        self._client = client
        self._logger = logger
        self._settings = settings

    async def execute(self, entry: SourceEntry) -> UpstreamOutcome:
        """Attempt the primary, then the fallback exactly once if there is one."""
        try:
            return await self.fetch(entry.primary, route=entry.name)
        except UpstreamError as primary_error:
            if entry.fallback is None:
                raise
            logger.info("Primary for %s failed (%s), trying fallback", entry.name, primary_error)
            try:
                outcome = await self.fetch(entry.fallback, route=f"{entry.name} (fallback)")
            except UpstreamError as fallback_error:
                raise BothFailedError(primary_error, fallback_error) from fallback_error
            return replace(outcome, used_fallback=True)

    async def fetch(self, descriptor: RequestDescriptor, *, route: str = "url") -> UpstreamOutcome:
        """Single attempt. Raises an UpstreamError subclass on any failure."""
        host = descriptor.host
        try:
            response = await self._client.get(
                descriptor.outbound_url(),
                headers=dict(descriptor.headers),
                timeout=self._settings.timeout,
            )
        except httpx.TimeoutException:
            error = UpstreamTimeoutError(
                f"Upstream timed out after {self._settings.timeout:g}s", provider=host
            )
            self._logger.log_error(route, 504, error.message)
            raise error from None
        except httpx.TooManyRedirects:
            error = UpstreamRedirectError(
                f"Exceeded {self._settings.max_redirects} redirects", provider=host
            )
            self._logger.log_error(route, 502, error.message)
            raise error from None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = descriptor.scrub(f"Upstream connection error: {e}")
            error = UpstreamConnectionError(message, provider=host)
            self._logger.log_error(route, 502, error.message)
            raise error from None

        if not 200 <= response.status_code <= 299:
            error = UpstreamStatusError(response.status_code, provider=host)
            self._logger.log_error(route, response.status_code, error.message)
            raise error

        body = descriptor.scrub_bytes(response.content)
        return UpstreamOutcome(
            status_code=response.status_code,
            body=body,
            content_type=resolve_content_type(response.headers.get("content-type"), body),
        )
