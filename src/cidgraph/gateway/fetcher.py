"""Cached, policy-governed fetchers for each document kind."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from cidgraph.cache.decorators import cached_effect
from cidgraph.core.documents import ADDRESS, METADATA, PROPERTY, RELATIONSHIP
from cidgraph.core.exceptions import ResolutionUnavailableError
from cidgraph.core.models import AddressRecord, MetadataRecord, PropertyRecord, RelationshipRecord
from cidgraph.gateway.client import GatewayClient
from cidgraph.gateway.retry import InfiniteRetryPolicy, LimitedRetryPolicy, RetryPolicy, SleepFunc

if TYPE_CHECKING:
    from cidgraph.cache.effect import EffectCache
    from cidgraph.config import CidGraphSettings


class DocumentFetcher:
    """
    Fetches gateway documents by cid, one method per document kind.

    Metadata, address and property documents use the infinite policy: they
    were written before the event that references them, so they are waited
    for. Relationship lookups use the limited policy and their exhaustion
    error is memoized, so a dead link is not retried within the same run.
    """

    def __init__(
        self,
        infinite: RetryPolicy,
        limited: RetryPolicy,
        cache: "EffectCache | None" = None,
    ) -> None:
        self._infinite = infinite
        self._limited = limited
        self._cache = cache

    @classmethod
    def from_settings(
        cls,
        client: GatewayClient,
        settings: "CidGraphSettings",
        *,
        cache: "EffectCache | None" = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> "DocumentFetcher":
        """Build both policies from settings around one gateway client."""
        infinite = InfiniteRetryPolicy(
            client,
            cycle_delay=settings.cycle_delay,
            max_validation_failures=settings.max_validation_failures,
            sleep=sleep,
        )
        limited = LimitedRetryPolicy(
            client,
            max_attempts=settings.limited_max_attempts,
            base_delay=settings.limited_base_delay,
            sleep=sleep,
        )
        return cls(infinite, limited, cache)

    @property
    def cache(self) -> "EffectCache | None":
        return self._cache

    @cached_effect(METADATA.operation, model=MetadataRecord)
    async def fetch_metadata(self, cid: str, *, stop: asyncio.Event | None = None) -> MetadataRecord:
        return await self._infinite.run(cid, METADATA, stop=stop)

    @cached_effect(
        RELATIONSHIP.operation,
        model=RelationshipRecord,
        cache_errors=(ResolutionUnavailableError,),
    )
    async def fetch_relationship(
        self, cid: str, *, stop: asyncio.Event | None = None
    ) -> RelationshipRecord:
        return await self._limited.run(cid, RELATIONSHIP, stop=stop)

    @cached_effect(ADDRESS.operation, model=AddressRecord)
    async def fetch_address(self, cid: str, *, stop: asyncio.Event | None = None) -> AddressRecord:
        return await self._infinite.run(cid, ADDRESS, stop=stop)

    @cached_effect(PROPERTY.operation, model=PropertyRecord)
    async def fetch_property(self, cid: str, *, stop: asyncio.Event | None = None) -> PropertyRecord:
        return await self._infinite.run(cid, PROPERTY, stop=stop)
