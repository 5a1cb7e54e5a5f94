"""cidgraph - Content-addressed document graph resolution over IPFS gateways."""

from cidgraph.client import CidGraphClient, resolve_content_hash
from cidgraph.core.cid import ContentHash, encode_content_identifier
from cidgraph.core.models import (
    AddressRecord,
    DataGroupHeartbeatEvent,
    DataSubmittedEvent,
    GatewayEndpoint,
    MetadataRecord,
    PropertyRecord,
    RelationshipRecord,
    ResolutionResult,
)
from cidgraph.core.types import DocumentKind, RelationName, RetryClass, SubmissionStatus
from cidgraph.services.submission import SubmissionOutcome

__version__ = "0.1.0"
__all__ = [
    # Client
    "CidGraphClient",
    "resolve_content_hash",
    # Content identifiers
    "ContentHash",
    "encode_content_identifier",
    # Types
    "DocumentKind",
    "RelationName",
    "RetryClass",
    "SubmissionStatus",
    # Models
    "AddressRecord",
    "DataGroupHeartbeatEvent",
    "DataSubmittedEvent",
    "GatewayEndpoint",
    "MetadataRecord",
    "PropertyRecord",
    "RelationshipRecord",
    "ResolutionResult",
    # Results
    "SubmissionOutcome",
    # Version
    "__version__",
]
