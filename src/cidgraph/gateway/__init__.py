"""Gateway access: single-shot client, retry policies and document fetchers."""

from cidgraph.gateway.client import FetchOutcome, GatewayClient
from cidgraph.gateway.fetcher import DocumentFetcher
from cidgraph.gateway.retry import (
    Attempt,
    InfiniteRetryPolicy,
    LimitedRetryPolicy,
    RetryPolicy,
    classify_outcome,
    diagnose_failure,
)

__all__ = [
    # Client
    "FetchOutcome",
    "GatewayClient",
    # Retry
    "Attempt",
    "InfiniteRetryPolicy",
    "LimitedRetryPolicy",
    "RetryPolicy",
    "classify_outcome",
    "diagnose_failure",
    # Fetcher
    "DocumentFetcher",
]
