"""Shared test fixtures for all tests."""

from __future__ import annotations

from typing import Any, NamedTuple

import pytest

from cidgraph.config import CidGraphSettings
from cidgraph.core.models import DataGroupHeartbeatEvent, DataSubmittedEvent, MetadataRecord


class DocumentCids(NamedTuple):
    metadata: str
    relationship: str
    property: str
    address: str


# ============================================================================
# Content Identifier Fixtures
# ============================================================================


@pytest.fixture
def cids() -> DocumentCids:
    """Content identifiers of the sample document graph."""
    return DocumentCids(
        metadata=EMPTY_SHA256_CID,
        relationship="bafkreirelationshippropertyaddress",
        property="bafkreipropertydocument",
        address="bafkreiaddressdocument",
    )


# ============================================================================
# Sample Document Fixtures
# ============================================================================


@pytest.fixture
def metadata_payload(cids: DocumentCids) -> dict[str, Any]:
    """Metadata document as served by a gateway."""
    return {
        "label": "County",
        "relationships": {
            "property_has_address": {"/": cids.relationship},
            "property_has_property_tax": [
                {"/": "bafkreitaxyearone"},
                {"/": "bafkreitaxyeartwo"},
            ],
        },
    }


@pytest.fixture
def metadata_record(metadata_payload: dict[str, Any]) -> MetadataRecord:
    return MetadataRecord.model_validate(metadata_payload)


@pytest.fixture
def relationship_payload(cids: DocumentCids) -> dict[str, Any]:
    """Relationship pointing from the property document to the address document."""
    return {
        "from": {"/": cids.property},
        "to": {"/": cids.address},
    }


@pytest.fixture
def property_payload() -> dict[str, Any]:
    """Property document with a parcel identifier."""
    return {
        "parcel_identifier": "52434205310037080",
        "property_type": "SingleFamily",
        "property_structure_built_year": 1994,
        "livable_floor_area": "1,850",
        "number_of_units": 1,
        "zoning": "RS",
        "request_identifier": "req-001",
    }


@pytest.fixture
def address_payload() -> dict[str, Any]:
    """Address document in the gateway's field naming."""
    return {
        "street_number": "123",
        "street_name": "Main",
        "street_suffix_type": "St",
        "street_pre_directional_text": "N",
        "city_name": "WEST PALM BEACH",
        "county_name": "Palm Beach",
        "state_code": "FL",
        "postal_code": "33401",
        "latitude": 26.7153,
        "longitude": -80.0534,
        "unit_identifier": "",
    }


# ============================================================================
# Event Fixtures
# ============================================================================


@pytest.fixture
def data_submitted_event() -> DataSubmittedEvent:
    """DataSubmitted event whose data hash maps to the sample metadata cid."""
    return DataSubmittedEvent(
        chain_id=137,
        block_number=61_000_000,
        block_timestamp=1_718_000_000,
        log_index=4,
        submitter=SUBMITTER,
        property_hash=PROPERTY_HASH,
        data_group_hash=DATA_GROUP_HASH,
        data_hash=EMPTY_SHA256,
    )


@pytest.fixture
def heartbeat_event() -> DataGroupHeartbeatEvent:
    """Heartbeat for the same property, one day later."""
    return DataGroupHeartbeatEvent(
        chain_id=137,
        block_number=61_040_000,
        block_timestamp=1_718_086_400,
        log_index=2,
        submitter=SUBMITTER,
        property_hash=PROPERTY_HASH,
        data_group_hash=DATA_GROUP_HASH,
        data_hash=EMPTY_SHA256,
    )


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def mock_settings() -> CidGraphSettings:
    """Create mock settings for testing."""
    return CidGraphSettings(
        _env_file=None,
        gateway_url="https://gw-one.test/ipfs",
        request_timeout=5.0,
        redis_url=None,
    )


@pytest.fixture
def mock_settings_no_gateway() -> CidGraphSettings:
    """Create settings without any gateway."""
    return CidGraphSettings(_env_file=None, gateways=[], gateway_url=None)


# ============================================================================
# Test Data Constants
# ============================================================================


# sha256 of the empty string and its CIDv1 (raw codec)
EMPTY_SHA256 = "0xe3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
EMPTY_SHA256_CID = "bafkreihdwdcefgh4dqkjv67uzcmw7ojee6xedzdetojuzjevtenxquvyku"

SUBMITTER = "0x2C810CD120eEb840a7012b77a2B4F19889Ecf65C"
PROPERTY_HASH = "0x" + "ab" * 32
DATA_GROUP_HASH = "0x" + "cd" * 32
