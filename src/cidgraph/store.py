"""Entity store interface and an in-memory implementation."""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from cidgraph.core.types import EntityKind


@runtime_checkable
class EntityStore(Protocol):
    """Named record collections owned by the caller; entities carry their own ``id``."""

    async def get(self, kind: EntityKind, entity_id: str) -> BaseModel | None:
        ...

    async def set(self, kind: EntityKind, entity: BaseModel) -> None:
        ...


class InMemoryEntityStore:
    """Dict-backed EntityStore, last write wins."""

    def __init__(self) -> None:
        self._collections: dict[EntityKind, dict[str, BaseModel]] = defaultdict(dict)

    async def get(self, kind: EntityKind, entity_id: str) -> BaseModel | None:
        return self._collections[kind].get(entity_id)

    async def set(self, kind: EntityKind, entity: BaseModel) -> None:
        entity_id = getattr(entity, "id", None)
        if not entity_id:
            raise ValueError(f"Cannot store {kind} entity without an id")
        self._collections[kind][entity_id] = entity

    def all(self, kind: EntityKind) -> dict[str, BaseModel]:
        """Snapshot of one collection."""
        return dict(self._collections[kind])

    def __len__(self) -> int:
        return sum(len(c) for c in self._collections.values())
