"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from cidgraph.core.exceptions import NoGatewayConfiguredError
from cidgraph.core.models import GatewayEndpoint


class CidGraphSettings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="CIDGRAPH_",
    )

    # Gateways
    gateways: list[GatewayEndpoint] = Field(
        default_factory=list,
        description='Ordered gateway list as JSON, e.g. [{"base_url": "...", "token": "..."}]',
    )
    gateway_url: str | None = Field(
        default=None,
        description="Single gateway base URL, tried after any entries in `gateways`",
    )
    gateway_token: str | None = Field(
        default=None,
        description="Access token for `gateway_url`",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds",
    )
    user_agent: str = Field(
        default="cidgraph/1.0",
        description="User-Agent header sent to gateways",
    )

    # Retry policies
    cycle_delay: float = Field(
        default=1.5,
        ge=0,
        description="Pause in seconds after each full pass over the gateways (infinite policy)",
    )
    limited_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per gateway for bounded lookups",
    )
    limited_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial backoff in seconds for bounded lookups, doubled per attempt",
    )
    max_validation_failures: int | None = Field(
        default=None,
        ge=1,
        description="Give up on a document after this many malformed payloads (unbounded if unset)",
    )

    # Redis
    redis_url: RedisDsn | None = Field(
        default=None,
        description="Redis connection URL for the persistent effect cache (optional)",
    )
    cache_ttl: int = Field(
        default=3600 * 24 * 7,
        description="Persistent effect cache TTL in seconds",
    )
    effect_cache_max_entries: int | None = Field(
        default=None,
        ge=1,
        description="Bound on in-process effect cache entries (unbounded if unset)",
    )

    # Submissions
    accepted_label: str = Field(
        default="County",
        description="Metadata label processed by the submission handlers",
    )
    allowed_submitters: list[str] = Field(
        default_factory=list,
        description="Submitter addresses to accept (all when empty)",
    )

    # Logging
    log_level: str | None = Field(
        default=None,
        description="Install the key-value log handler at this level (leave logging alone if unset)",
    )

    def gateway_endpoints(self) -> tuple[GatewayEndpoint, ...]:
        """Ordered, non-empty gateway list; raises NoGatewayConfiguredError otherwise."""
        endpoints = list(self.gateways)
        if self.gateway_url:
            endpoints.append(GatewayEndpoint(base_url=self.gateway_url, token=self.gateway_token))
        if not endpoints:
            raise NoGatewayConfiguredError(
                "No IPFS gateway configured; set CIDGRAPH_GATEWAYS or CIDGRAPH_GATEWAY_URL",
            )
        return tuple(endpoints)


@lru_cache
def get_settings() -> CidGraphSettings:
    """Get cached settings instance."""
    return CidGraphSettings()
