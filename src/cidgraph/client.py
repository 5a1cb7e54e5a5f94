"""Main library client for standalone usage."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from cidgraph.cache.effect import EffectCache
from cidgraph.config import CidGraphSettings, get_settings
from cidgraph.core.cid import ContentHash, encode_content_identifier
from cidgraph.core.models import (
    DataGroupHeartbeatEvent,
    DataSubmittedEvent,
    MetadataRecord,
    ResolutionResult,
)
from cidgraph.gateway.client import GatewayClient
from cidgraph.gateway.fetcher import DocumentFetcher
from cidgraph.gateway.retry import SleepFunc
from cidgraph.logs import configure_logging
from cidgraph.resolution.graph import RelationshipGraphResolver
from cidgraph.services.submission import SubmissionOutcome, SubmissionService
from cidgraph.store import EntityStore, InMemoryEntityStore

if TYPE_CHECKING:
    import httpx

    from cidgraph.cache.client import AsyncRedisClient

logger = logging.getLogger(__name__)


class CidGraphClient:
    """
    Main client for the cidgraph library.

    Resolves content-addressed metadata documents through the configured
    gateways and runs the submission handlers against an entity store.

    Usage:
        async with CidGraphClient() as client:
            # Metadata cid from an on-chain content hash
            cid = client.encode_content_identifier("0x3f...")

            # Resolve address and property leaves
            result = await client.resolve_hash("0x3f...")

            # Feed contract events
            outcome = await client.handle_data_submitted(event)

    Settings are loaded from environment variables or can be passed explicitly.
    """

    def __init__(
        self,
        settings: CidGraphSettings | None = None,
        *,
        store: EntityStore | None = None,
        use_cache: bool = True,
        transport: "httpx.AsyncBaseTransport | None" = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Application settings. If not provided, the cached get_settings().
            store: Entity store for derived records (in-memory if not provided)
            use_cache: Whether to use Redis caching if available.
            transport: Optional httpx transport for the gateway client
            sleep: Awaitable sleep used by the retry policies
        """
        self._settings = settings or get_settings()
        self._store = store if store is not None else InMemoryEntityStore()
        self._use_cache = use_cache
        self._transport = transport
        self._sleep = sleep
        self._gateway: GatewayClient | None = None
        self._redis: AsyncRedisClient | None = None
        self._fetcher: DocumentFetcher | None = None
        self._resolver: RelationshipGraphResolver | None = None
        self._service: SubmissionService | None = None

    async def __aenter__(self) -> CidGraphClient:
        """Initialize resources on context entry."""
        await self._initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Clean up resources on context exit."""
        await self.close()

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def fetcher(self) -> DocumentFetcher | None:
        return self._fetcher

    async def _initialize(self) -> None:
        """Initialize client resources."""
        if self._settings.log_level:
            configure_logging(self._settings.log_level)

        # Fails fast when no gateway is configured
        endpoints = self._settings.gateway_endpoints()
        self._gateway = GatewayClient(
            endpoints,
            timeout=self._settings.request_timeout,
            user_agent=self._settings.user_agent,
            transport=self._transport,
        )

        # Initialize persistent cache tier if available
        if self._use_cache and self._settings.redis_url:
            try:
                from cidgraph.cache.client import AsyncRedisClient

                self._redis = AsyncRedisClient(str(self._settings.redis_url))
                await self._redis.connect()
                logger.info("Redis cache initialized")
            except Exception as e:
                logger.warning(f"Failed to initialize cache: {e}")
                self._redis = None

        cache = EffectCache(
            self._redis,
            ttl=self._settings.cache_ttl,
            max_entries=self._settings.effect_cache_max_entries,
        )
        self._fetcher = DocumentFetcher.from_settings(
            self._gateway,
            self._settings,
            cache=cache,
            sleep=self._sleep,
        )
        self._resolver = RelationshipGraphResolver(self._fetcher, self._store)
        self._service = SubmissionService(
            self._fetcher,
            self._resolver,
            self._store,
            accepted_label=self._settings.accepted_label,
            allowed_submitters=self._settings.allowed_submitters,
        )
        logger.info(
            "Client initialized",
            extra={"gateways": [e.base_url for e in endpoints]},
        )

    async def close(self) -> None:
        """Close all resources."""
        if self._gateway:
            await self._gateway.close()
            self._gateway = None

        if self._redis:
            await self._redis.close()
            self._redis = None

        self._fetcher = None
        self._resolver = None
        self._service = None

    def _ensure_initialized(self) -> None:
        """Ensure client is initialized."""
        if self._fetcher is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with CidGraphClient() as client:'"
            )

    def clear_cache(self) -> None:
        """Forget settled documents so the next lookups go back to the gateways."""
        self._ensure_initialized()
        self._fetcher.cache.clear()

    @staticmethod
    def encode_content_identifier(content_hash: str | bytes | ContentHash) -> str:
        """Encode a 32-byte content hash as a CIDv1 raw/sha2-256 identifier."""
        return encode_content_identifier(content_hash)

    async def fetch_metadata(
        self,
        cid: str,
        *,
        stop: asyncio.Event | None = None,
    ) -> MetadataRecord:
        """Fetch and validate the metadata document behind a cid."""
        self._ensure_initialized()
        return await self._fetcher.fetch_metadata(cid, stop=stop)

    async def resolve(
        self,
        cid: str,
        *,
        stop: asyncio.Event | None = None,
    ) -> ResolutionResult:
        """
        Resolve the address and property leaves reachable from a metadata cid.

        Args:
            cid: Content identifier of the metadata document
            stop: Optional event that ends any retry loop still running

        Returns:
            ResolutionResult with the ids of the leaves that resolved
        """
        self._ensure_initialized()
        metadata = await self._fetcher.fetch_metadata(cid, stop=stop)
        return await self._resolver.resolve(metadata, cid, stop=stop)

    async def resolve_hash(
        self,
        content_hash: str | bytes | ContentHash,
        *,
        stop: asyncio.Event | None = None,
    ) -> ResolutionResult:
        """Resolve starting from an on-chain content hash."""
        return await self.resolve(encode_content_identifier(content_hash), stop=stop)

    async def handle_data_submitted(
        self,
        event: DataSubmittedEvent,
        *,
        stop: asyncio.Event | None = None,
    ) -> SubmissionOutcome:
        self._ensure_initialized()
        return await self._service.handle_data_submitted(event, stop=stop)

    async def handle_heartbeat(
        self,
        event: DataGroupHeartbeatEvent,
        *,
        stop: asyncio.Event | None = None,
    ) -> SubmissionOutcome:
        self._ensure_initialized()
        return await self._service.handle_heartbeat(event, stop=stop)


# Convenience function for one-off resolutions
async def resolve_content_hash(
    content_hash: str | bytes | ContentHash,
    *,
    settings: CidGraphSettings | None = None,
) -> ResolutionResult:
    """
    Resolve a content hash (convenience function).

    For multiple resolutions, use CidGraphClient so documents are shared
    through one effect cache.
    """
    async with CidGraphClient(settings) as client:
        return await client.resolve_hash(content_hash)
