"""Single-shot HTTP client for IPFS gateways."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from cidgraph.core.exceptions import NoGatewayConfiguredError
from cidgraph.core.models import GatewayEndpoint

TOKEN_PARAM = "pinataGatewayToken"


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one GET against one gateway. Exactly one of data/status/error explains it."""

    cid: str
    endpoint: GatewayEndpoint
    status_code: int | None = None
    reason: str | None = None
    data: Any = None
    error: Exception | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )


class GatewayClient:
    """
    Issues one GET per call for a content identifier against a chosen gateway.

    Provides:
    - HTTP client management with connection pooling
    - Token query parameter for authenticated gateways
    - Outcomes instead of exceptions for HTTP and transport failures

    No retry logic lives here; see ``cidgraph.gateway.retry``.
    """

    def __init__(
        self,
        endpoints: Sequence[GatewayEndpoint],
        *,
        timeout: float = 30.0,
        user_agent: str = "cidgraph/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoints:
            raise NoGatewayConfiguredError("At least one IPFS gateway endpoint is required")
        self.endpoints: tuple[GatewayEndpoint, ...] = tuple(endpoints)
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create HTTP client with proper lifecycle."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers=self._get_default_headers(),
                follow_redirects=True,
                transport=self._transport,
            )
        yield self._client

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Accept": "application/json",
        }

    @staticmethod
    def build_url(cid: str, endpoint: GatewayEndpoint, *, include_token: bool = True) -> str:
        """Full document URL; pass include_token=False for anything that gets logged."""
        url = f"{endpoint.base_url}/{cid}"
        if include_token and endpoint.token:
            return str(httpx.URL(url, params={TOKEN_PARAM: endpoint.token}))
        return url

    async def fetch(self, cid: str, endpoint: GatewayEndpoint) -> FetchOutcome:
        """GET ``{base_url}/{cid}`` once and report what happened."""
        start = time.monotonic()
        params = {TOKEN_PARAM: endpoint.token} if endpoint.token else None

        try:
            async with self._get_client() as client:
                response = await client.get(f"{endpoint.base_url}/{cid}", params=params)
        except httpx.HTTPError as e:
            return FetchOutcome(
                cid=cid,
                endpoint=endpoint,
                error=e,
                duration_ms=(time.monotonic() - start) * 1000,
            )

        duration_ms = (time.monotonic() - start) * 1000

        if not response.is_success:
            return FetchOutcome(
                cid=cid,
                endpoint=endpoint,
                status_code=response.status_code,
                reason=response.reason_phrase,
                duration_ms=duration_ms,
            )

        try:
            data = response.json()
        except ValueError as e:
            return FetchOutcome(
                cid=cid,
                endpoint=endpoint,
                status_code=response.status_code,
                reason=response.reason_phrase,
                error=e,
                duration_ms=duration_ms,
            )

        return FetchOutcome(
            cid=cid,
            endpoint=endpoint,
            status_code=response.status_code,
            reason=response.reason_phrase,
            data=data,
            duration_ms=duration_ms,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
