"""Custom exception hierarchy for cidgraph."""

from typing import Any


class CidGraphError(Exception):
    """Base exception for all cidgraph errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidHashLengthError(CidGraphError):
    """Content hash does not decode to exactly 32 bytes."""

    def __init__(
        self,
        message: str,
        length: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.length = length


class NoGatewayConfiguredError(CidGraphError):
    """No gateway endpoint is configured; the process cannot start."""

    pass


class ResolutionError(CidGraphError):
    """Failed to resolve a content identifier."""

    def __init__(
        self,
        message: str,
        cid: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.cid = cid


class TransientNetworkError(ResolutionError):
    """A gateway request failed at the transport level or with a retriable status."""

    def __init__(
        self,
        message: str,
        cid: str,
        endpoint: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, cid, details)
        self.endpoint = endpoint
        self.status_code = status_code


class SchemaValidationError(ResolutionError):
    """Fetched payload does not match the expected document shape."""

    pass


class ResolutionUnavailableError(ResolutionError):
    """Bounded retries were exhausted on every gateway."""

    def __init__(
        self,
        message: str,
        cid: str,
        attempts: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, cid, details)
        self.attempts = attempts


class ResolutionCancelledError(ResolutionError):
    """The caller signalled the stop token of a retry loop."""

    pass


class CacheError(CidGraphError):
    """Cache operation failed."""

    pass
