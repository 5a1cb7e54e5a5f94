"""Domain models for gateway documents and derived records."""

from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .cid import is_content_identifier
from .types import RELATION_CARDINALITY, Cardinality, RelationName


def _is_link(value: Any) -> bool:
    return isinstance(value, dict) and is_content_identifier(value.get("/"))


class LinkReference(BaseModel):
    """Typed pointer to another document: ``{"/": cid}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cid: str = Field(..., alias="/", description="Target content identifier")


class GatewayEndpoint(BaseModel):
    """One IPFS HTTP gateway."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., description="Gateway base URL, e.g. https://gw.example/ipfs")
    token: str | None = Field(default=None, description="Optional gateway access token")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ============================================================================
# Gateway documents
# ============================================================================


class MetadataRecord(BaseModel):
    """Root document of a submission: a label plus a labeled link graph."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str = Field(..., min_length=1)
    relationships: dict[str, LinkReference | list[LinkReference]] = Field(
        default_factory=dict
    )

    @field_validator("relationships", mode="before")
    @classmethod
    def drop_unusable_links(cls, v: Any) -> Any:
        """Keep only entries shaped like a link, or a list of links, to a cid."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        usable: dict[str, Any] = {}
        for name, value in v.items():
            if _is_link(value):
                usable[name] = value
            elif isinstance(value, list):
                usable[name] = [item for item in value if _is_link(item)]
        return usable

    def links(self, relation: RelationName | str) -> list[str]:
        """Return the target cids of a relation, honoring its fixed cardinality."""
        value = self.relationships.get(str(relation))
        if value is None:
            return []
        refs = value if isinstance(value, list) else [value]
        try:
            cardinality = RELATION_CARDINALITY[RelationName(relation)]
        except ValueError:
            cardinality = Cardinality.MULTI
        if cardinality == Cardinality.SINGLE:
            refs = refs[:1]
        return [ref.cid for ref in refs]

    def known_relations(self) -> list[RelationName]:
        """Relations present in this document that belong to the fixed vocabulary."""
        known = {r.value for r in RelationName}
        return [RelationName(name) for name in self.relationships if name in known]


class RelationshipRecord(BaseModel):
    """Directed edge between two documents; ``to`` is mandatory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    from_: LinkReference | None = Field(default=None, alias="from")
    to: LinkReference

    @property
    def from_cid(self) -> str | None:
        return self.from_.cid if self.from_ else None

    @property
    def to_cid(self) -> str:
        return self.to.cid


class _LeafRecord(BaseModel):
    """Flat record of independently optional fields."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: str | None = Field(default=None, description="Content identifier of the source document")

    def with_id(self, cid: str) -> _LeafRecord:
        return self.model_copy(update={"id": cid})

    def present_fields(self) -> dict[str, Any]:
        """Fields that were present in the source document (None means absent)."""
        return self.model_dump(exclude_none=True, exclude={"id"})


class AddressRecord(_LeafRecord):
    """Normalized postal address."""

    request_identifier: str | None = None
    block: str | None = None
    city_name: str | None = None
    country_code: str | None = None
    county_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    lot: str | None = None
    municipality_name: str | None = None
    plus_four_postal_code: str | None = None
    postal_code: str | None = None
    range: str | None = None
    route_number: str | None = None
    section: str | None = None
    state_code: str | None = None
    street_name: str | None = None
    street_number: str | None = None
    street_direction_prefix: str | None = Field(
        default=None,
        validation_alias=AliasChoices("street_pre_directional_text", "street_direction_prefix"),
    )
    street_direction_suffix: str | None = Field(
        default=None,
        validation_alias=AliasChoices("street_post_directional_text", "street_direction_suffix"),
    )
    street_suffix: str | None = Field(
        default=None,
        validation_alias=AliasChoices("street_suffix_type", "street_suffix"),
    )
    township: str | None = None
    unit_identifier: str | None = None


class PropertyRecord(_LeafRecord):
    """Normalized parcel facts."""

    property_type: str | None = None
    property_structure_built_year: str | None = None
    property_effective_built_year: str | None = None
    parcel_identifier: str | None = None
    area_under_air: str | None = None
    historic_designation: bool | None = None
    livable_floor_area: str | None = None
    number_of_units: int | None = None
    number_of_units_type: str | None = None
    property_legal_description_text: str | None = None
    request_identifier: str | None = None
    subdivision: str | None = None
    total_area: str | None = None
    zoning: str | None = None


class ResolutionResult(BaseModel):
    """Outcome of one resolution pass; fields are set only for resolved leaves."""

    address_id: str | None = None
    property_data_id: str | None = None
    parcel_identifier: str | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.address_id is None
            and self.property_data_id is None
            and self.parcel_identifier is None
        )


# ============================================================================
# Chain events and derived entities
# ============================================================================


class _ChainEvent(BaseModel):
    """Decoded submission-contract event."""

    model_config = ConfigDict(frozen=True)

    chain_id: int
    block_number: int
    block_timestamp: int
    log_index: int
    submitter: str
    property_hash: str
    data_group_hash: str
    data_hash: str

    @property
    def event_id(self) -> str:
        return f"{self.chain_id}_{self.block_number}_{self.log_index}"

    def to_record(self) -> EventRecord:
        return EventRecord(
            id=self.event_id,
            property_hash=self.property_hash,
            data_group_hash=self.data_group_hash,
            data_hash=self.data_hash,
            submitter=self.submitter,
        )


class EventRecord(BaseModel):
    """Stored copy of a raw contract event."""

    id: str
    property_hash: str
    data_group_hash: str
    data_hash: str
    submitter: str


class DataSubmittedEvent(_ChainEvent):
    """A new data submission for a property."""


class DataGroupHeartbeatEvent(_ChainEvent):
    """A re-confirmation of previously submitted data."""


class LabeledSubmission(BaseModel):
    """Latest labeled submission for a parcel, keyed by parcel identifier."""

    id: str
    property_hash: str
    submitter: str
    data_hash: str
    cid: str
    label: str
    address_id: str | None = None
    property_id: str | None = None
    datetime: int


class CountyStats(BaseModel):
    """Count of unique parcels seen per county."""

    id: str
    county_name: str
    unique_properties_count: int = 0
    last_updated: str

    @staticmethod
    def id_for(county_name: str) -> str:
        return "county_" + re.sub(r"[^a-z0-9]", "_", county_name.lower())
