"""Core enums and type definitions."""

from enum import StrEnum


class DocumentKind(StrEnum):
    """Kinds of off-chain documents fetched from the content network."""

    METADATA = "metadata"
    RELATIONSHIP = "relationship"
    ADDRESS = "address"
    PROPERTY = "property"


class RetryClass(StrEnum):
    """Classification of a single fetch outcome."""

    SUCCESS = "success"
    RETRY_INDEFINITELY = "retry_indefinitely"
    RETRY_LIMITED = "retry_limited"
    FATAL = "fatal"


class FailureCause(StrEnum):
    """Diagnostic label for transport failures, used in logs only."""

    DNS_RESOLUTION_FAILED = "DNS_RESOLUTION_FAILED"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_RESET = "CONNECTION_RESET"
    TIMEOUT = "TIMEOUT"
    REQUEST_ABORTED = "REQUEST_ABORTED"
    UNKNOWN_NETWORK_ERROR = "UNKNOWN_NETWORK_ERROR"


class Cardinality(StrEnum):
    """Whether a relation holds one link or an ordered list of links."""

    SINGLE = "single"
    MULTI = "multi"


class RelationName(StrEnum):
    """Known relation names in a metadata document's link graph."""

    PROPERTY_HAS_ADDRESS = "property_has_address"
    PROPERTY_HAS_STRUCTURE = "property_has_structure"
    PROPERTY_HAS_LOT = "property_has_lot"
    PROPERTY_HAS_TAX = "property_has_property_tax"
    PROPERTY_HAS_SALES_HISTORY = "property_has_sales_history"
    PROPERTY_HAS_UTILITY = "property_has_utility"
    PROPERTY_HAS_FLOOD_STORM_INFORMATION = "property_has_flood_storm_information"
    PROPERTY_HAS_LAYOUT = "property_has_layout"
    PROPERTY_HAS_FILE = "property_has_file"
    PERSON_HAS_PROPERTY = "person_has_property"
    COMPANY_HAS_PROPERTY = "company_has_property"
    DEED_HAS_FILE = "deed_has_file"
    SALES_HISTORY_HAS_DEED = "sales_history_has_deed"
    PROPERTY_HAS_FACT_SHEET = "property_has_fact_sheet"


RELATION_CARDINALITY: dict[RelationName, Cardinality] = {
    RelationName.PROPERTY_HAS_ADDRESS: Cardinality.SINGLE,
    RelationName.PROPERTY_HAS_STRUCTURE: Cardinality.SINGLE,
    RelationName.PROPERTY_HAS_LOT: Cardinality.SINGLE,
    RelationName.PROPERTY_HAS_TAX: Cardinality.MULTI,
    RelationName.PROPERTY_HAS_SALES_HISTORY: Cardinality.MULTI,
    RelationName.PROPERTY_HAS_UTILITY: Cardinality.SINGLE,
    RelationName.PROPERTY_HAS_FLOOD_STORM_INFORMATION: Cardinality.SINGLE,
    RelationName.PROPERTY_HAS_LAYOUT: Cardinality.MULTI,
    RelationName.PROPERTY_HAS_FILE: Cardinality.MULTI,
    RelationName.PERSON_HAS_PROPERTY: Cardinality.MULTI,
    RelationName.COMPANY_HAS_PROPERTY: Cardinality.MULTI,
    RelationName.DEED_HAS_FILE: Cardinality.MULTI,
    RelationName.SALES_HISTORY_HAS_DEED: Cardinality.MULTI,
    RelationName.PROPERTY_HAS_FACT_SHEET: Cardinality.MULTI,
}


class EntityKind(StrEnum):
    """Named record collections in the entity store."""

    ADDRESS = "Address"
    PROPERTY = "Property"
    LABELED_SUBMISSION = "DataSubmittedWithLabel"
    COUNTY_STATS = "CountyStats"
    DATA_SUBMITTED_EVENT = "DataSubmitted"
    HEARTBEAT_EVENT = "DataGroupHeartBeat"


class SubmissionStatus(StrEnum):
    """What a submission handler did with an event."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_SUBMITTER = "skipped_submitter"
    SKIPPED_LABEL = "skipped_label"
    SKIPPED_NO_PARCEL = "skipped_no_parcel"
    NOT_FOUND = "not_found"
    FAILED = "failed"
