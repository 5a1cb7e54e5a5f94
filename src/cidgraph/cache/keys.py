"""Cache key builders for consistent key formatting."""


class CacheKeys:
    """Cache key builders for consistent key formatting."""

    PREFIX = "cidgraph"

    @classmethod
    def effect(cls, operation: str, cid: str) -> str:
        """Key for a memoized document fetch."""
        return f"{cls.PREFIX}:effect:{operation}:{cid}"
