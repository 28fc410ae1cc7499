"""
Relationship Graph Snapshot

Immutable node/edge collection produced by the builder. Snapshots carry no
identity across builds; every "edit" returns a new snapshot.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..contracts.base import Edge, LinkCategory, Node


@dataclass(frozen=True)
class RelationshipGraph:
    """Frozen goal/project graph."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]
    _index: Dict[str, Node] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "_index", {n.node_id: n for n in self.nodes})

    def node(self, node_id: str) -> Optional[Node]:
        return self._index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(n.node_id for n in self.nodes)

    def edges_touching(self, node_id: str) -> List[Edge]:
        """Edges with `node_id` at either end, in edge-list order."""
        return [e for e in self.edges if e.touches(node_id)]

    def sibling_edges(self, anchor_id: str, category: LinkCategory) -> List[Edge]:
        return [
            e for e in self.edges
            if e.anchor_id == anchor_id and e.category == category
        ]

    def sibling_weights(self, anchor_id: str, category: LinkCategory) -> Dict[str, float]:
        """
        Weights of one link set keyed by edge id.

        Keyed by edge id rather than neighbour id so duplicate links keep
        their own weights.
        """
        return {e.edge_id: e.weight for e in self.sibling_edges(anchor_id, category)}

    def with_sibling_weights(
        self,
        anchor_id: str,
        category: LinkCategory,
        weights: Mapping[str, float]
    ) -> RelationshipGraph:
        """New snapshot with the given edge weights applied to one link set."""
        edges = tuple(
            e.with_weight(weights[e.edge_id])
            if e.anchor_id == anchor_id and e.category == category and e.edge_id in weights
            else e
            for e in self.edges
        )
        return RelationshipGraph(nodes=self.nodes, edges=edges)

    def with_nodes(self, nodes: Iterable[Node]) -> RelationshipGraph:
        return RelationshipGraph(nodes=tuple(nodes), edges=self.edges)

    def anchors(self) -> List[Tuple[str, LinkCategory]]:
        """Distinct (anchor, category) link sets, in edge-list order."""
        return list(dict.fromkeys((e.anchor_id, e.category) for e in self.edges))
