"""Unit test fixtures with HTTP mocking."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
import respx
from httpx import Response

from cidgraph.cache.effect import EffectCache
from cidgraph.core.models import GatewayEndpoint
from cidgraph.gateway.client import GatewayClient
from cidgraph.gateway.fetcher import DocumentFetcher
from cidgraph.gateway.retry import InfiniteRetryPolicy, LimitedRetryPolicy
from cidgraph.resolution.graph import RelationshipGraphResolver
from cidgraph.store import InMemoryEntityStore

GATEWAY_ONE = "https://gw-one.test/ipfs"
GATEWAY_TWO = "https://gw-two.test/ipfs"


# ============================================================================
# HTTP Mocking Fixtures
# ============================================================================


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP mocking.

    Use this when you need fine-grained control over mocked responses.
    The mock is automatically started and stopped by respx.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ============================================================================
# Retry Timing Fixtures
# ============================================================================


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep(delay)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


# ============================================================================
# Gateway Fixtures
# ============================================================================


@pytest.fixture
def endpoints() -> list[GatewayEndpoint]:
    return [GatewayEndpoint(base_url=GATEWAY_ONE)]


@pytest.fixture
async def gateway_client(endpoints: list[GatewayEndpoint]):
    """Gateway client over the configured endpoints, closed after the test."""
    client = GatewayClient(endpoints, timeout=5.0)
    yield client
    await client.close()


@pytest.fixture
def effect_cache() -> EffectCache:
    return EffectCache()


@pytest.fixture
def fetcher(
    gateway_client: GatewayClient,
    sleep: SleepRecorder,
    effect_cache: EffectCache,
) -> DocumentFetcher:
    """Fetcher with recorded sleeps and a fresh in-process cache."""
    return DocumentFetcher(
        InfiniteRetryPolicy(gateway_client, sleep=sleep),
        LimitedRetryPolicy(gateway_client, sleep=sleep),
        effect_cache,
    )


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def resolver(fetcher: DocumentFetcher, store: InMemoryEntityStore) -> RelationshipGraphResolver:
    return RelationshipGraphResolver(fetcher, store)


# ============================================================================
# Document Graph Routes
# ============================================================================


@pytest.fixture
def graph_routes(
    respx_mock: respx.MockRouter,
    cids,
    metadata_payload: dict[str, Any],
    relationship_payload: dict[str, Any],
    property_payload: dict[str, Any],
    address_payload: dict[str, Any],
) -> dict[str, respx.Route]:
    """Serve the whole sample document graph from the first gateway."""
    return {
        "metadata": respx_mock.get(f"{GATEWAY_ONE}/{cids.metadata}").mock(
            return_value=Response(200, json=metadata_payload)
        ),
        "relationship": respx_mock.get(f"{GATEWAY_ONE}/{cids.relationship}").mock(
            return_value=Response(200, json=relationship_payload)
        ),
        "property": respx_mock.get(f"{GATEWAY_ONE}/{cids.property}").mock(
            return_value=Response(200, json=property_payload)
        ),
        "address": respx_mock.get(f"{GATEWAY_ONE}/{cids.address}").mock(
            return_value=Response(200, json=address_payload)
        ),
    }
