"""
Radial Layout Engine
====================

Places the graph on concentric rings around a focal node.

ALGORITHM:
==========
1. Ring 1: the focal node's distinct neighbours, in edge-list order, split
   the angle window into equal slices. Neighbour i sits at
   start + i * step, `base_radius` away from the focal node.
2. Ring d+1: each ring-d node, in ring order, claims its still-unplaced
   neighbours and spreads them over [angle - step/4, angle + step/4]
   (step = its own slice width), at `radius * ring_decay` from itself.
   Child j sits in the middle of its sub-slice.
3. Stops after `max_depth` rings or when a ring claims nobody.

A visited set spans the whole traversal and rings are claimed one at a
time, so every node is placed exactly once, on its shallowest ring.
Cycles cannot move a node that is already placed.

FAILURE SEMANTICS:
==================
Never raises. Unknown focal node: input returned as is. Nodes the
traversal does not reach keep whatever position they had.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple
import numpy as np

from ..contracts.base import Edge, Node, Position
from ..contracts.diagnostics import DiagnosticCode
from ..observability import DiagnosticsCollector, record_diagnostic

logger = logging.getLogger(__name__)

FULL_CIRCLE = (0.0, 2 * math.pi)


@dataclass
class LayoutConfig:
    """Configuration for radial layout."""
    base_radius: float = 300.0
    ring_decay: float = 0.8
    max_depth: int = 3  # rings beyond the focal node
    angle_window: Tuple[float, float] = FULL_CIRCLE


@dataclass(frozen=True)
class Placement:
    """Where and why one node was placed."""
    node_id: str
    depth: int
    angle: float
    radius: float
    slice_width: float
    parent_id: str
    position: Position


@dataclass(frozen=True)
class LayoutResult:
    """
    Immutable outcome of one layout pass.

    `applied` is False only when the focal node was unknown.
    """
    focal_id: str
    nodes: Tuple[Node, ...]
    placements: Tuple[Placement, ...] = field(default_factory=tuple)
    unreached_ids: Tuple[str, ...] = field(default_factory=tuple)
    applied: bool = True
    _by_node: Dict[str, Placement] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_by_node', {p.node_id: p for p in self.placements})

    def placement_of(self, node_id: str) -> Optional[Placement]:
        return self._by_node.get(node_id)

    def depth_of(self, node_id: str) -> Optional[int]:
        if node_id == self.focal_id and self.applied:
            return 0
        placement = self.placement_of(node_id)
        return placement.depth if placement else None


def build_adjacency(edges: Sequence[Edge], known: Set[str]) -> Dict[str, List[str]]:
    """
    Distinct neighbours per node, in edge-list order.

    Edges are walked in both directions; endpoints outside `known` are skipped.
    """
    adjacency: Dict[str, Dict[str, None]] = {}
    for edge in edges:
        if edge.from_id not in known or edge.to_id not in known:
            continue
        adjacency.setdefault(edge.from_id, {})[edge.to_id] = None
        adjacency.setdefault(edge.to_id, {})[edge.from_id] = None
    return {node_id: list(neighbours) for node_id, neighbours in adjacency.items()}


def _ring_positions(origin: Position, radius: float, angles: np.ndarray) -> List[Position]:
    xs = origin.x + radius * np.cos(angles)
    ys = origin.y + radius * np.sin(angles)
    return [Position(x=float(x), y=float(y)) for x, y in zip(xs, ys)]


class _Traversal:
    """Mutable state of one layout pass. Never outlives compute()."""

    def __init__(self, adjacency: Dict[str, List[str]], focal: Node, config: LayoutConfig):
        self.adjacency = adjacency
        self.config = config
        self.visited: Set[str] = {focal.node_id}
        self.positions: Dict[str, Position] = {focal.node_id: focal.position}
        self.placements: List[Placement] = []

    def claim(self, node_id: str) -> List[str]:
        children = [n for n in self.adjacency.get(node_id, ()) if n not in self.visited]
        self.visited.update(children)
        return children

    def place(
        self,
        children: List[str],
        parent_id: str,
        angles: np.ndarray,
        radius: float,
        slice_width: float,
        depth: int
    ) -> List[Placement]:
        origin = self.positions[parent_id]
        placed = []
        for node_id, angle, position in zip(children, angles, _ring_positions(origin, radius, angles)):
            placement = Placement(
                node_id=node_id,
                depth=depth,
                angle=float(angle),
                radius=radius,
                slice_width=slice_width,
                parent_id=parent_id,
                position=position,
            )
            self.positions[node_id] = position
            placed.append(placement)
        self.placements.extend(placed)
        return placed

    def first_ring(self, focal_id: str, base_radius: float, window: Tuple[float, float]) -> List[Placement]:
        children = self.claim(focal_id)
        if not children:
            return []
        start, end = window
        step = (end - start) / len(children)
        angles = start + np.arange(len(children)) * step
        return self.place(children, focal_id, angles, base_radius, step, depth=1)

    def descend(self, ring: List[Placement], depth: int):
        """Place ring depth+1 from ring `depth`, then recurse."""
        if not ring or depth >= self.config.max_depth:
            return

        next_ring: List[Placement] = []
        for parent in ring:
            children = self.claim(parent.node_id)
            if not children:
                continue
            sub_start = parent.angle - parent.slice_width / 4
            sub_step = (parent.slice_width / 2) / len(children)
            angles = sub_start + np.arange(len(children)) * sub_step + sub_step / 2
            next_ring.extend(self.place(
                children,
                parent.node_id,
                angles,
                parent.radius * self.config.ring_decay,
                sub_step,
                depth=depth + 1,
            ))

        self.descend(next_ring, depth + 1)


class RadialLayoutEngine:
    """
    Stateless radial layout.

    Each compute() call starts from scratch; nothing is cached between
    calls, so identical inputs give bit-identical positions.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        diagnostics: Optional[DiagnosticsCollector] = None
    ):
        self._config = config or LayoutConfig()
        self._diagnostics = diagnostics

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def compute(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        focal_id: str,
        base_radius: Optional[float] = None,
        angle_window: Optional[Tuple[float, float]] = None
    ) -> LayoutResult:
        nodes = tuple(nodes)
        index: Dict[str, Node] = {}
        for node in nodes:
            index.setdefault(node.node_id, node)

        focal = index.get(focal_id)
        if focal is None:
            record_diagnostic(
                self._diagnostics,
                DiagnosticCode.UNKNOWN_FOCAL_NODE,
                "layout",
                f"focal node {focal_id} not in graph; layout skipped",
                subject_id=focal_id,
            )
            return LayoutResult(focal_id=focal_id, nodes=nodes, applied=False)

        radius = self._config.base_radius if base_radius is None else base_radius
        window = self._config.angle_window if angle_window is None else angle_window

        traversal = _Traversal(build_adjacency(edges, set(index)), focal, self._config)
        if self._config.max_depth >= 1:
            ring = traversal.first_ring(focal_id, radius, window)
            traversal.descend(ring, 1)

        positions = traversal.positions
        laid_out = tuple(
            node.with_position(positions[node.node_id])
            if node.node_id in positions and node.node_id != focal_id
            else node
            for node in nodes
        )
        unreached = tuple(node_id for node_id in index if node_id not in positions)

        if unreached:
            record_diagnostic(
                self._diagnostics,
                DiagnosticCode.UNREACHED_NODE,
                "layout",
                f"{len(unreached)} nodes not reached within {self._config.max_depth} rings",
                subject_id=focal_id,
                count=len(unreached),
            )

        logger.debug(
            "radial layout around %s: %d placed, %d unreached",
            focal_id, len(traversal.placements), len(unreached)
        )
        return LayoutResult(
            focal_id=focal_id,
            nodes=laid_out,
            placements=tuple(traversal.placements),
            unreached_ids=unreached,
        )


def radial_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    focal_id: str,
    base_radius: float = 300.0,
    angle_window: Tuple[float, float] = FULL_CIRCLE,
    max_depth: int = 3,
    ring_decay: float = 0.8
) -> List[Node]:
    """
    Lay nodes out around `focal_id`; returns a new list in input order.

    Inputs are not mutated. Unknown focal node: the input nodes come back
    unchanged.
    """
    config = LayoutConfig(
        base_radius=base_radius,
        ring_decay=ring_decay,
        max_depth=max_depth,
        angle_window=angle_window,
    )
    return list(RadialLayoutEngine(config).compute(nodes, edges, focal_id).nodes)
