"""Walks the metadata → relationship → leaf link graph."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cidgraph.core.exceptions import ResolutionError
from cidgraph.core.models import (
    AddressRecord,
    MetadataRecord,
    PropertyRecord,
    RelationshipRecord,
    ResolutionResult,
)
from cidgraph.core.types import EntityKind, RelationName

if TYPE_CHECKING:
    from cidgraph.gateway.fetcher import DocumentFetcher
    from cidgraph.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class LeafResult:
    """Outcome of one leaf branch; ``record`` is None when the branch failed."""

    kind: EntityKind
    cid: str
    record: AddressRecord | PropertyRecord | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.record is not None


class RelationshipGraphResolver:
    """
    Resolves the leaf documents reachable from a metadata document.

    The graph has a fixed two-level shape: metadata links name relationship
    records, and each relationship points ``from`` a property document ``to``
    an address document. Relationship lookups and leaf fetches for sibling
    branches run concurrently. A failed branch is logged and left out of the
    result; it never aborts its siblings.
    """

    def __init__(
        self,
        fetcher: "DocumentFetcher",
        store: "EntityStore | None" = None,
    ) -> None:
        self._fetcher = fetcher
        self._store = store

    async def resolve(
        self,
        metadata: MetadataRecord,
        root_cid: str,
        *,
        stop: asyncio.Event | None = None,
    ) -> ResolutionResult:
        """
        Resolve the address and property leaves of a metadata document.

        Args:
            metadata: Root document, already fetched
            root_cid: Content identifier of the metadata document (for logs)
            stop: Optional event that ends any retry loop still running

        Returns:
            ResolutionResult with the ids of the leaves that resolved
        """
        links = metadata.links(RelationName.PROPERTY_HAS_ADDRESS)
        if not links:
            logger.info(
                "Metadata has no property_has_address relation",
                extra={"cid": root_cid, "label": metadata.label},
            )
            return ResolutionResult()

        relationships = await asyncio.gather(
            *(self._try_relationship(root_cid, cid, stop) for cid in links)
        )

        property_cid: str | None = None
        address_cid: str | None = None
        for relationship in relationships:
            if relationship is None:
                continue
            property_cid = property_cid or relationship.from_cid
            address_cid = address_cid or relationship.to_cid

        branches = []
        if property_cid:
            branches.append(self._resolve_leaf(root_cid, EntityKind.PROPERTY, property_cid, stop))
        if address_cid:
            branches.append(self._resolve_leaf(root_cid, EntityKind.ADDRESS, address_cid, stop))

        leaves: list[LeafResult] = await asyncio.gather(*branches)

        result = ResolutionResult()
        for leaf in leaves:
            if not leaf.success:
                logger.warning(
                    f"Failed to fetch {leaf.kind.value.lower()} data",
                    extra={"cid": root_cid, "leaf_cid": leaf.cid, "error": leaf.error},
                )
                continue
            if leaf.kind == EntityKind.PROPERTY:
                result.property_data_id = leaf.cid
                result.parcel_identifier = leaf.record.parcel_identifier or None
            else:
                result.address_id = leaf.cid

        return result

    async def collect_links(
        self,
        metadata: MetadataRecord,
        root_cid: str,
        relations: Iterable[RelationName] | None = None,
        *,
        stop: asyncio.Event | None = None,
    ) -> dict[RelationName, list[RelationshipRecord]]:
        """
        Fetch the relationship records behind any subset of relations.

        Defaults to every known relation present in the metadata. Multi-valued
        relations keep document order; links that fail to resolve are dropped.
        """
        selected = list(relations) if relations is not None else metadata.known_relations()
        pairs = [(relation, cid) for relation in selected for cid in metadata.links(relation)]

        records = await asyncio.gather(
            *(self._try_relationship(root_cid, cid, stop) for _, cid in pairs)
        )

        collected: dict[RelationName, list[RelationshipRecord]] = {r: [] for r in selected}
        for (relation, _), record in zip(pairs, records):
            if record is not None:
                collected[relation].append(record)
        return collected

    async def _try_relationship(
        self,
        root_cid: str,
        cid: str,
        stop: asyncio.Event | None,
    ) -> RelationshipRecord | None:
        """Fetch one relationship record, turning failure into None."""
        try:
            return await self._fetcher.fetch_relationship(cid, stop=stop)
        except ResolutionError as e:
            logger.warning(
                "Relationship unavailable, skipping branch",
                extra={"cid": root_cid, "relationship_cid": cid, "error": e.message},
            )
        except Exception as e:
            logger.exception(
                f"Relationship fetch failed: {e}",
                extra={"cid": root_cid, "relationship_cid": cid},
            )
        return None

    async def _resolve_leaf(
        self,
        root_cid: str,
        kind: EntityKind,
        cid: str,
        stop: asyncio.Event | None,
    ) -> LeafResult:
        """Fetch, stamp and persist one leaf; failures stay inside the branch."""
        try:
            if kind == EntityKind.PROPERTY:
                record: Any = await self._fetcher.fetch_property(cid, stop=stop)
            else:
                record = await self._fetcher.fetch_address(cid, stop=stop)
            entity = record.with_id(cid)
            if self._store is not None:
                await self._store.set(kind, entity)
            return LeafResult(kind=kind, cid=cid, record=entity)
        except ResolutionError as e:
            return LeafResult(kind=kind, cid=cid, error=e.message)
        except Exception as e:
            logger.exception(
                f"{kind.value} branch failed: {e}",
                extra={"cid": root_cid, "leaf_cid": cid},
            )
            return LeafResult(kind=kind, cid=cid, error=str(e))
