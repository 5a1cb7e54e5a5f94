"""Core types, models, and utilities."""

from .cid import ContentHash, encode_content_identifier, is_content_identifier
from .documents import (
    ADDRESS,
    METADATA,
    PROPERTY,
    RELATIONSHIP,
    DocumentSpec,
    ValidationResult,
    validate_document,
)
from .exceptions import (
    CacheError,
    CidGraphError,
    InvalidHashLengthError,
    NoGatewayConfiguredError,
    ResolutionCancelledError,
    ResolutionError,
    ResolutionUnavailableError,
    SchemaValidationError,
    TransientNetworkError,
)
from .models import (
    AddressRecord,
    CountyStats,
    DataGroupHeartbeatEvent,
    DataSubmittedEvent,
    EventRecord,
    GatewayEndpoint,
    LabeledSubmission,
    LinkReference,
    MetadataRecord,
    PropertyRecord,
    RelationshipRecord,
    ResolutionResult,
)
from .types import (
    RELATION_CARDINALITY,
    Cardinality,
    DocumentKind,
    EntityKind,
    FailureCause,
    RelationName,
    RetryClass,
    SubmissionStatus,
)

__all__ = [
    # Types
    "RELATION_CARDINALITY",
    "Cardinality",
    "DocumentKind",
    "EntityKind",
    "FailureCause",
    "RelationName",
    "RetryClass",
    "SubmissionStatus",
    # Content identifiers
    "ContentHash",
    "encode_content_identifier",
    "is_content_identifier",
    # Documents
    "ADDRESS",
    "METADATA",
    "PROPERTY",
    "RELATIONSHIP",
    "DocumentSpec",
    "ValidationResult",
    "validate_document",
    # Models
    "AddressRecord",
    "CountyStats",
    "DataGroupHeartbeatEvent",
    "DataSubmittedEvent",
    "EventRecord",
    "GatewayEndpoint",
    "LabeledSubmission",
    "LinkReference",
    "MetadataRecord",
    "PropertyRecord",
    "RelationshipRecord",
    "ResolutionResult",
    # Exceptions
    "CacheError",
    "CidGraphError",
    "InvalidHashLengthError",
    "NoGatewayConfiguredError",
    "ResolutionCancelledError",
    "ResolutionError",
    "ResolutionUnavailableError",
    "SchemaValidationError",
    "TransientNetworkError",
]
