"""
Topology Engine
===============

Structural analysis of the goal/project graph using graph topology.

This engine computes TOPOLOGY (geometry), not IMPORTANCE:

ALLOWED:
- Connected components (disconnected clusters the layout will not reach)
- Ring depths from a focal node
- Cycle detection
- Structural metrics (density, diameter)

NOT HERE:
- Weight arithmetic (see weights / progress)
- Angular placement (see layout)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set
import networkx as nx

from ..contracts.base import Edge, Node


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for a graph or subgraph."""
    node_count: int
    edge_count: int
    density: float
    is_connected: bool
    connected_components_count: int
    diameter: Optional[int] = None  # Only for connected graphs

    def to_dict(self) -> dict:
        return {
            'node_count': self.node_count,
            'edge_count': self.edge_count,
            'density': self.density,
            'is_connected': self.is_connected,
            'connected_components_count': self.connected_components_count,
            'diameter': self.diameter,
        }


class RelationshipTopology:
    """
    Structural view of a relationship graph.

    Wraps NetworkX. Links are treated as undirected structural connections:
    relation labels and weights do not change topology.
    """

    def __init__(self):
        self._graph = nx.MultiGraph()

    def build(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> RelationshipTopology:
        """
        Build graph from nodes and edges.

        Replaces internal graph state. Edges to unknown nodes are ignored.
        """
        self._graph = nx.MultiGraph()

        for node in nodes:
            self._graph.add_node(node.node_id, kind=node.kind.value)

        for edge in edges:
            if edge.from_id not in self._graph or edge.to_id not in self._graph:
                continue
            self._graph.add_edge(
                edge.from_id,
                edge.to_id,
                key=edge.edge_id,
                relation=edge.relation.value,
                weight=edge.weight
            )
        return self

    def get_connected_components(self) -> List[Set[str]]:
        """
        Identify disjoint subgraphs.

        Returned in arbitrary order.
        """
        if not self._graph:
            return []
        return [set(c) for c in nx.connected_components(self._graph)]

    def ring_depths(self, focal_id: str, cutoff: Optional[int] = None) -> Dict[str, int]:
        """Hop distance from the focal node, for nodes within `cutoff` hops."""
        if focal_id not in self._graph:
            return {}
        return dict(nx.single_source_shortest_path_length(self._graph, focal_id, cutoff=cutoff))

    def unreachable_from(self, focal_id: str, cutoff: Optional[int] = None) -> Set[str]:
        """Nodes a layout around `focal_id` with `cutoff` rings would not place."""
        reached = self.ring_depths(focal_id, cutoff)
        return set(self._graph.nodes) - set(reached)

    def find_cycles(self) -> List[List[str]]:
        """
        Cycles in the simple projection of the graph.

        Parallel links between the same pair are not reported as cycles.
        """
        return nx.cycle_basis(nx.Graph(self._graph))

    def compute_metrics(self) -> GraphMetrics:
        """Compute purely structural metrics."""
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, False, 0, None)

        simple = nx.Graph(self._graph)
        is_connected = nx.is_connected(simple)

        diameter = None
        if is_connected and len(simple) > 1:
            diameter = nx.diameter(simple)

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(simple),
            is_connected=is_connected,
            connected_components_count=nx.number_connected_components(simple),
            diameter=diameter
        )

    def clear(self):
        self._graph.clear()
