"""
Graph Visualization Contracts

Responsibility:
Deterministic transformation of a laid-out relationship graph into a
renderable view. Pan, zoom and drawing belong to the renderer.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import hashlib

from .contracts.base import Edge, Node
from .core.layout import LayoutResult
from .core.topology import GraphMetrics, RelationshipTopology


@dataclass(frozen=True)
class GraphNodeView:
    """Renderable graph node."""
    node_id: str
    x: float
    y: float
    width: float
    height: float
    label: str
    kind: str
    status: str
    completion_percent: float
    is_focal_point: bool
    depth: Optional[int]  # None when the layout did not reach it

    @staticmethod
    def from_node(node: Node, focal_id: str, depth: Optional[int]) -> GraphNodeView:
        return GraphNodeView(
            node_id=node.node_id,
            x=node.position.x,
            y=node.position.y,
            width=node.size.width,
            height=node.size.height,
            label=node.label,
            kind=node.kind.value,
            status=node.status.value,
            completion_percent=node.completion_percent,
            is_focal_point=node.node_id == focal_id,
            depth=depth,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.node_id,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'label': self.label,
            'kind': self.kind,
            'status': self.status,
            'completion': self.completion_percent,
            'focal': self.is_focal_point,
            'depth': self.depth,
        }


@dataclass(frozen=True)
class GraphEdgeView:
    """Renderable graph edge."""
    edge_id: str
    source_id: str
    target_id: str
    relation: str
    weight: float
    impact: str

    @staticmethod
    def from_edge(edge: Edge) -> GraphEdgeView:
        return GraphEdgeView(
            edge_id=edge.edge_id,
            source_id=edge.from_id,
            target_id=edge.to_id,
            relation=edge.relation.value,
            weight=edge.weight,
            impact=edge.impact.value,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.edge_id,
            'source': self.source_id,
            'target': self.target_id,
            'relation': self.relation,
            'weight': self.weight,
            'impact': self.impact,
        }


@dataclass(frozen=True)
class NetworkGraphView:
    """
    Pre-layouted network graph.
    Layout must be stable: same graph and focal node, same view_id.

    `unreached_ids` were not placed within the ring limit; `detached_ids`
    sit in a component the focal node cannot reach at any depth.
    """
    view_id: str
    focal_id: str
    nodes: Tuple[GraphNodeView, ...]
    edges: Tuple[GraphEdgeView, ...]
    metrics: GraphMetrics
    unreached_ids: Tuple[str, ...]
    detached_ids: Tuple[str, ...] = ()
    cycles: Tuple[Tuple[str, ...], ...] = ()

    @staticmethod
    def from_layout(
        layout: LayoutResult,
        edges: Tuple[Edge, ...],
        topology: RelationshipTopology
    ) -> NetworkGraphView:
        nodes = tuple(
            GraphNodeView.from_node(n, layout.focal_id, layout.depth_of(n.node_id))
            for n in layout.nodes
        )
        return NetworkGraphView(
            view_id=compute_view_id(layout.focal_id, nodes),
            focal_id=layout.focal_id,
            nodes=nodes,
            edges=tuple(GraphEdgeView.from_edge(e) for e in edges),
            metrics=topology.compute_metrics(),
            unreached_ids=layout.unreached_ids,
            detached_ids=_detached_ids(layout, topology) if layout.applied else (),
            cycles=tuple(sorted(tuple(sorted(cycle)) for cycle in topology.find_cycles())),
        )

    def node(self, node_id: str) -> Optional[GraphNodeView]:
        for view in self.nodes:
            if view.node_id == node_id:
                return view
        return None

    def to_dict(self) -> dict:
        return {
            'view_id': self.view_id,
            'focal_id': self.focal_id,
            'nodes': [n.to_dict() for n in self.nodes],
            'edges': [e.to_dict() for e in self.edges],
            'metrics': self.metrics.to_dict(),
            'unreached': list(self.unreached_ids),
            'detached': list(self.detached_ids),
            'cycles': [list(c) for c in self.cycles],
        }


def _detached_ids(layout: LayoutResult, topology: RelationshipTopology) -> Tuple[str, ...]:
    """Unreached nodes outside the focal node's component, in node order."""
    focal_component = next(
        (c for c in topology.get_connected_components() if layout.focal_id in c),
        {layout.focal_id},
    )
    seen = set()
    detached = []
    for node in layout.nodes:
        if node.node_id not in focal_component and node.node_id not in seen:
            seen.add(node.node_id)
            detached.append(node.node_id)
    return tuple(detached)


def compute_view_id(focal_id: str, nodes: Tuple[GraphNodeView, ...]) -> str:
    """Deterministic hash of focal id and node positions."""
    content = focal_id + "|" + "|".join(
        f"{n.node_id}:{n.x!r}:{n.y!r}" for n in nodes
    )
    return "view_" + hashlib.sha256(content.encode('utf-8')).hexdigest()[:16]
