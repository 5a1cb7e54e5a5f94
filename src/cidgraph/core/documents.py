"""Per-kind document validators and transformers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .cid import is_content_identifier
from .models import AddressRecord, MetadataRecord, PropertyRecord, RelationshipRecord
from .types import DocumentKind

RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass(frozen=True)
class ValidationResult(Generic[RecordT]):
    """Outcome of validating and transforming one raw payload."""

    ok: bool
    record: RecordT | None = None
    reason: str | None = None


@dataclass(frozen=True)
class DocumentSpec(Generic[RecordT]):
    """How to recognise and build one kind of gateway document."""

    kind: DocumentKind
    operation: str
    model: type[RecordT]
    accepts: Callable[[Any], bool]

    @property
    def label(self) -> str:
        return f"{self.kind.value} data"


def _is_object(data: Any) -> bool:
    return isinstance(data, dict)


def _has_label(data: Any) -> bool:
    return _is_object(data) and isinstance(data.get("label"), str) and bool(data["label"])


def _has_to_link(data: Any) -> bool:
    if not _is_object(data):
        return False
    to = data.get("to")
    return isinstance(to, dict) and is_content_identifier(to.get("/"))


METADATA = DocumentSpec(
    kind=DocumentKind.METADATA,
    operation="ipfs_metadata",
    model=MetadataRecord,
    accepts=_has_label,
)
RELATIONSHIP = DocumentSpec(
    kind=DocumentKind.RELATIONSHIP,
    operation="relationship_data",
    model=RelationshipRecord,
    accepts=_has_to_link,
)
ADDRESS = DocumentSpec(
    kind=DocumentKind.ADDRESS,
    operation="address_data",
    model=AddressRecord,
    accepts=_is_object,
)
PROPERTY = DocumentSpec(
    kind=DocumentKind.PROPERTY,
    operation="property_data",
    model=PropertyRecord,
    accepts=_is_object,
)

SPECS: dict[DocumentKind, DocumentSpec[Any]] = {
    spec.kind: spec for spec in (METADATA, RELATIONSHIP, ADDRESS, PROPERTY)
}


def validate_document(spec: DocumentSpec[RecordT], data: Any) -> ValidationResult[RecordT]:
    """Check a payload's shape, then build its canonical record. Never raises."""
    if not spec.accepts(data):
        return ValidationResult(ok=False, reason=f"payload is not a valid {spec.label} document")
    try:
        record = spec.model.model_validate(data)
    except PydanticValidationError as e:
        return ValidationResult(ok=False, reason=f"{e.error_count()} field error(s): {e.errors()[0]['msg']}")
    return ValidationResult(ok=True, record=record)
