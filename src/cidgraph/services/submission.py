"""Submission service for turning contract events into labeled parcel entities."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cidgraph.core.cid import encode_content_identifier
from cidgraph.core.exceptions import CidGraphError
from cidgraph.core.models import (
    CountyStats,
    DataGroupHeartbeatEvent,
    DataSubmittedEvent,
    LabeledSubmission,
    MetadataRecord,
    ResolutionResult,
)
from cidgraph.core.types import EntityKind, SubmissionStatus

if TYPE_CHECKING:
    from cidgraph.gateway.fetcher import DocumentFetcher
    from cidgraph.resolution.graph import RelationshipGraphResolver
    from cidgraph.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """What a handler did with one event."""

    status: SubmissionStatus
    cid: str | None = None
    entity_id: str | None = None
    resolution: ResolutionResult | None = None


class _Skip(Exception):
    """Internal early exit carrying the outcome to report."""

    def __init__(self, outcome: SubmissionOutcome) -> None:
        super().__init__(outcome.status.value)
        self.outcome = outcome


class SubmissionService:
    """
    Handles DataSubmitted and DataGroupHeartBeat events.

    Orchestrates the flow for one event:
    1. Store the raw event
    2. Derive the metadata cid from the event's data hash
    3. Fetch metadata and keep only the accepted label
    4. Resolve the address/property leaves
    5. Create or refresh the parcel's LabeledSubmission
    6. Count new parcels per county

    Failures are logged and reported in the outcome; nothing is raised into
    the event harness.
    """

    def __init__(
        self,
        fetcher: "DocumentFetcher",
        resolver: "RelationshipGraphResolver",
        store: "EntityStore",
        *,
        accepted_label: str = "County",
        allowed_submitters: Iterable[str] = (),
    ) -> None:
        """
        Initialize the submission service.

        Args:
            fetcher: Document fetcher used for metadata
            resolver: Graph resolver for the address/property leaves
            store: Entity store that receives every derived record
            accepted_label: Metadata label to process; others are skipped
            allowed_submitters: Submitter addresses to accept (all when empty)
        """
        self._fetcher = fetcher
        self._resolver = resolver
        self._store = store
        self.accepted_label = accepted_label
        self._allowed = frozenset(s.lower() for s in allowed_submitters)

    def accepts_submitter(self, submitter: str) -> bool:
        return not self._allowed or submitter.lower() in self._allowed

    async def handle_data_submitted(
        self,
        event: DataSubmittedEvent,
        *,
        stop: asyncio.Event | None = None,
    ) -> SubmissionOutcome:
        """Create or update the LabeledSubmission for a new data submission."""
        if not self.accepts_submitter(event.submitter):
            return SubmissionOutcome(status=SubmissionStatus.SKIPPED_SUBMITTER)

        await self._store.set(EntityKind.DATA_SUBMITTED_EVENT, event.to_record())

        cid: str | None = None
        try:
            cid = encode_content_identifier(event.data_hash)
            metadata, resolution = await self._resolve(event, cid, "DataSubmitted", stop)
            parcel_identifier = resolution.parcel_identifier

            if resolution.property_data_id:
                logger.info(
                    "Property entity created",
                    extra={"property_id": resolution.property_data_id, "parcel_identifier": parcel_identifier},
                )
            if resolution.address_id:
                logger.info(
                    "Address entity created",
                    extra={"address_id": resolution.address_id, "parcel_identifier": parcel_identifier},
                )

            existing = await self._store.get(EntityKind.LABELED_SUBMISSION, parcel_identifier)
            entity = LabeledSubmission(
                id=parcel_identifier,
                property_hash=event.property_hash,
                submitter=event.submitter,
                data_hash=event.data_hash,
                cid=cid,
                label=metadata.label,
                address_id=resolution.address_id,
                property_id=resolution.property_data_id,
                datetime=event.block_timestamp,
            )
            await self._store.set(EntityKind.LABELED_SUBMISSION, entity)

            if existing is None and resolution.address_id:
                await self._count_county(resolution.address_id, entity.datetime)

            status = SubmissionStatus.UPDATED if existing else SubmissionStatus.CREATED
            logger.info(
                f"{'Updated' if existing else 'Created'} DataSubmittedWithLabel entity",
                extra={
                    "entity_id": entity.id,
                    "property_hash": event.property_hash,
                    "label": metadata.label,
                    "address_id": resolution.address_id,
                    "property_data_id": resolution.property_data_id,
                    "datetime": entity.datetime,
                },
            )
            return SubmissionOutcome(status=status, cid=cid, entity_id=entity.id, resolution=resolution)

        except _Skip as skip:
            return skip.outcome
        except CidGraphError as e:
            logger.warning(
                "Failed to get metadata for CID",
                extra={"cid": cid, "data_hash": event.data_hash, "error": e.message},
            )
        except Exception as e:
            logger.exception(f"DataSubmitted handler failed: {e}", extra={"cid": cid})
        return SubmissionOutcome(status=SubmissionStatus.FAILED, cid=cid)

    async def handle_heartbeat(
        self,
        event: DataGroupHeartbeatEvent,
        *,
        stop: asyncio.Event | None = None,
    ) -> SubmissionOutcome:
        """Refresh the datetime of the parcel's existing LabeledSubmission."""
        if not self.accepts_submitter(event.submitter):
            return SubmissionOutcome(status=SubmissionStatus.SKIPPED_SUBMITTER)

        await self._store.set(EntityKind.HEARTBEAT_EVENT, event.to_record())

        cid: str | None = None
        try:
            cid = encode_content_identifier(event.data_hash)
            _, resolution = await self._resolve(event, cid, "HeartBeat", stop)
            parcel_identifier = resolution.parcel_identifier

            existing = await self._store.get(EntityKind.LABELED_SUBMISSION, parcel_identifier)
            if existing is None:
                existing = await self._store.get(EntityKind.LABELED_SUBMISSION, event.property_hash)

            if existing is None:
                logger.warning(
                    "DataSubmittedWithLabel not found for HeartBeat",
                    extra={"property_hash": event.property_hash, "parcel_identifier": parcel_identifier},
                )
                return SubmissionOutcome(
                    status=SubmissionStatus.NOT_FOUND,
                    cid=cid,
                    entity_id=parcel_identifier,
                    resolution=resolution,
                )

            updated = existing.model_copy(update={"datetime": event.block_timestamp})
            await self._store.set(EntityKind.LABELED_SUBMISSION, updated)
            logger.info(
                "Updated datetime for property from HeartBeat",
                extra={
                    "property_hash": event.property_hash,
                    "entity_id": updated.id,
                    "parcel_identifier": parcel_identifier,
                    "datetime": event.block_timestamp,
                },
            )
            return SubmissionOutcome(
                status=SubmissionStatus.UPDATED,
                cid=cid,
                entity_id=updated.id,
                resolution=resolution,
            )

        except _Skip as skip:
            return skip.outcome
        except CidGraphError as e:
            logger.warning(
                "Failed to update datetime from HeartBeat",
                extra={"property_hash": event.property_hash, "cid": cid, "error": e.message},
            )
        except Exception as e:
            logger.exception(f"HeartBeat handler failed: {e}", extra={"cid": cid})
        return SubmissionOutcome(status=SubmissionStatus.FAILED, cid=cid)

    async def _resolve(
        self,
        event: DataSubmittedEvent | DataGroupHeartbeatEvent,
        cid: str,
        source: str,
        stop: asyncio.Event | None,
    ) -> tuple[MetadataRecord, ResolutionResult]:
        """Fetch metadata and resolve it; raises _Skip for label/parcel mismatches."""
        metadata = await self._fetcher.fetch_metadata(cid, stop=stop)

        if metadata.label != self.accepted_label:
            logger.info(
                f"Skipping {source} - label is not {self.accepted_label}",
                extra={"property_hash": event.property_hash, "label": metadata.label, "cid": cid},
            )
            raise _Skip(SubmissionOutcome(status=SubmissionStatus.SKIPPED_LABEL, cid=cid))

        resolution = await self._resolver.resolve(metadata, cid, stop=stop)

        if not resolution.parcel_identifier:
            logger.info(
                f"Skipping {source} - no parcel_identifier found",
                extra={"property_hash": event.property_hash, "cid": cid},
            )
            raise _Skip(
                SubmissionOutcome(
                    status=SubmissionStatus.SKIPPED_NO_PARCEL,
                    cid=cid,
                    resolution=resolution,
                )
            )
        return metadata, resolution

    async def _count_county(self, address_id: str, datetime: int) -> None:
        """Increment the county counter for a newly seen parcel."""
        try:
            address = await self._store.get(EntityKind.ADDRESS, address_id)
            county_name = getattr(address, "county_name", None)
            if not county_name:
                return

            stats_id = CountyStats.id_for(county_name)
            stats = await self._store.get(EntityKind.COUNTY_STATS, stats_id)
            if stats is not None:
                updated = stats.model_copy(
                    update={
                        "unique_properties_count": stats.unique_properties_count + 1,
                        "last_updated": str(datetime),
                    }
                )
            else:
                updated = CountyStats(
                    id=stats_id,
                    county_name=county_name,
                    unique_properties_count=1,
                    last_updated=str(datetime),
                )
            await self._store.set(EntityKind.COUNTY_STATS, updated)

            logger.info(
                "Updated county statistics",
                extra={
                    "county_name": county_name,
                    "county_stats_id": stats_id,
                    "is_new_county": stats is None,
                    "new_count": updated.unique_properties_count,
                },
            )
        except Exception as e:
            logger.warning(
                "Failed to update county statistics",
                extra={"address_id": address_id, "error": str(e)},
            )
