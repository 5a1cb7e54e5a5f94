"""Caching decorators for async fetch methods."""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar

from pydantic import BaseModel

P = ParamSpec("P")
R = TypeVar("R")
S = TypeVar("S")


def cached_effect(
    operation: str,
    *,
    model: type[BaseModel] | None = None,
    cache_errors: bool | tuple[type[BaseException], ...] = False,
):
    """
    Decorator routing an async ``(self, cid, ...)`` method through ``self._cache``.

    Args:
        operation: Operation name; together with the cid it forms the cache key.
        model: Record type, used to (de)serialize entries in the persistent tier.
        cache_errors: True, or the exception types, memoized as the result.

    Usage:
        @cached_effect("address_data", model=AddressRecord)
        async def fetch_address(self, cid: str) -> AddressRecord:
            ...
    """

    def decorator(
        func: Callable[Concatenate[S, str, P], Awaitable[R]],
    ) -> Callable[Concatenate[S, str, P], Awaitable[R]]:
        @wraps(func)
        async def wrapper(self: S, cid: str, *args: P.args, **kwargs: P.kwargs) -> R:
            cache: Any = getattr(self, "_cache", None)
            if cache is None:
                return await func(self, cid, *args, **kwargs)

            return await cache.run(
                operation,
                cid,
                lambda: func(self, cid, *args, **kwargs),
                model=model,
                cache_errors=cache_errors,
            )

        return wrapper

    return decorator
