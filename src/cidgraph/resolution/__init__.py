"""Link-graph resolution over fetched gateway documents."""

from cidgraph.resolution.graph import LeafResult, RelationshipGraphResolver

__all__ = [
    "LeafResult",
    "RelationshipGraphResolver",
]
