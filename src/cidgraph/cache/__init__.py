"""Effect caching with an optional Redis tier."""

from .client import AsyncRedisClient
from .decorators import cached_effect
from .effect import EffectCache
from .keys import CacheKeys

__all__ = [
    "AsyncRedisClient",
    "CacheKeys",
    "EffectCache",
    "cached_effect",
]
