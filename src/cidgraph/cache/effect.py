"""In-process memoization of document fetches with an optional Redis tier."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cidgraph.cache.keys import CacheKeys
from cidgraph.core.exceptions import CacheError

if TYPE_CHECKING:
    from cidgraph.cache.client import AsyncRedisClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
CacheErrors = bool | tuple[type[BaseException], ...]


class EffectCache:
    """
    Memoizes results by (operation, input) for the lifetime of a resolution run.

    Concurrent callers for the same key share one in-flight task, so a
    document is fetched at most once per key. Failures are kept only when
    ``cache_errors`` is True or names the raised exception type; otherwise the
    entry is dropped and the next call runs the operation again. Waiters
    that get cancelled never cancel the shared fetch.

    When a Redis client is supplied, successful pydantic results are also
    written through as JSON and read back on a memory miss.

    Entries live until the owner calls ``clear()`` (CidGraphClient.clear_cache
    between runs) or, with ``max_entries`` set, until the oldest settled
    entries are evicted to make room.
    """

    def __init__(
        self,
        backend: "AsyncRedisClient | None" = None,
        ttl: int = 3600,
        max_entries: int | None = None,
    ) -> None:
        self._entries: dict[tuple[str, str], asyncio.Future[Any]] = {}
        self._backend = backend
        self._ttl = ttl
        self._max_entries = max_entries
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: tuple[str, str]) -> bool:
        return item in self._entries

    async def run(
        self,
        operation: str,
        key: str,
        factory: Callable[[], Awaitable[T]],
        *,
        model: type[BaseModel] | None = None,
        cache_errors: CacheErrors = False,
    ) -> T:
        """Return the memoized result for (operation, key), running factory on a miss."""
        entry_key = (operation, key)
        task = self._entries.get(entry_key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(self._load(operation, key, factory, model))
            self._entries[entry_key] = task
            task.add_done_callback(partial(self._settle, entry_key, cache_errors))
            self._evict()
        else:
            self.hits += 1
            logger.debug("Effect cache hit", extra={"operation": operation, "cid": key})
        return await asyncio.shield(task)

    def clear(self) -> None:
        """Forget every settled entry; in-flight fetches keep running."""
        self._entries = {k: t for k, t in self._entries.items() if not t.done()}

    def _evict(self) -> None:
        """Drop the oldest settled entries while over max_entries."""
        if self._max_entries is None:
            return
        excess = len(self._entries) - self._max_entries
        if excess <= 0:
            return
        settled = [k for k, t in self._entries.items() if t.done()][:excess]
        for entry_key in settled:
            del self._entries[entry_key]

    def _settle(
        self,
        entry_key: tuple[str, str],
        cache_errors: CacheErrors,
        task: asyncio.Future[Any],
    ) -> None:
        if task.cancelled():
            failed = True
        else:
            error = task.exception()
            if error is None or cache_errors is True:
                failed = False
            elif isinstance(cache_errors, tuple):
                failed = not isinstance(error, cache_errors)
            else:
                failed = True
        if failed and self._entries.get(entry_key) is task:
            del self._entries[entry_key]

    async def _load(
        self,
        operation: str,
        key: str,
        factory: Callable[[], Awaitable[T]],
        model: type[BaseModel] | None,
    ) -> T:
        persistent = self._backend is not None and model is not None
        redis_key = CacheKeys.effect(operation, key)

        if persistent:
            try:
                stored = await self._backend.get(redis_key)
            except CacheError as e:
                logger.warning(
                    "Persistent effect cache read failed",
                    extra={"operation": operation, "cid": key, "error": e.message},
                )
                stored = None
            if stored is not None:
                try:
                    return model.model_validate(stored)
                except PydanticValidationError:
                    logger.warning(
                        "Discarding unreadable persistent cache entry",
                        extra={"operation": operation, "cid": key},
                    )

        result = await factory()

        if persistent and isinstance(result, BaseModel):
            try:
                await self._backend.set(
                    redis_key,
                    result.model_dump(mode="json", by_alias=True),
                    ttl=self._ttl,
                )
            except CacheError as e:
                logger.warning(
                    "Persistent effect cache write failed",
                    extra={"operation": operation, "cid": key, "error": e.message},
                )
        return result
