"""
Base Contracts and Shared Types

These are the foundational types used across the graph engine.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- Layout, normalization and aggregation never mutate these values
- "Changing" a node or edge means building a new one (with_position, with_weight)
- Node ids are namespaced by kind so goals and projects never collide
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


# =============================================================================
# VOCABULARIES
# =============================================================================

class NodeKind(Enum):
    """Kind of a graph node. The value doubles as the id prefix."""
    GOAL = "goal"
    PROJECT = "project"


class NodeStatus(Enum):
    """Lifecycle status shared by goals and projects."""
    NOT_STARTED = "NOT_STARTED"
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: object) -> NodeStatus:
        """
        Map a raw status string to a member.

        Accepts "IN_PROGRESS", "InProgress", "in progress" and similar.
        Anything unrecognised becomes UNKNOWN; never raises.
        """
        if isinstance(raw, NodeStatus):
            return raw
        if not isinstance(raw, str) or not raw.strip():
            return cls.UNKNOWN

        text = raw.strip()
        # CamelCase -> snake
        chars = []
        for i, ch in enumerate(text):
            if ch.isupper() and i > 0 and text[i - 1].islower():
                chars.append("_")
            chars.append(ch)
        key = "".join(chars).upper().replace(" ", "_").replace("-", "_")

        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


class Relation(Enum):
    """Display relation between two linked nodes (non-authoritative)."""
    SUPPORTS = "supports"
    SUPPORTED_BY = "supportedBy"
    RELATED_TO = "relatedTo"


class LinkCategory(Enum):
    """Which link set of the anchor goal an edge weight belongs to."""
    GOAL_LINK = "linkedGoals"
    PROJECT_LINK = "linkedProjects"


class ImpactLevel(Enum):
    """Coarse impact bucket for a link weight."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def for_weight(cls, weight: float) -> ImpactLevel:
        if weight >= 75:
            return cls.HIGH
        if weight >= 40:
            return cls.MEDIUM
        return cls.LOW


def node_id_for(kind: NodeKind, raw_id: object) -> str:
    """Namespaced node id, e.g. node_id_for(NodeKind.GOAL, 7) == "goal-7"."""
    return f"{kind.value}-{raw_id}"


# =============================================================================
# GEOMETRY
# =============================================================================

@dataclass(frozen=True)
class Position:
    """2-D point in layout space."""
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> Position:
        return Position(x=self.x + dx, y=self.y + dy)

    def distance_to(self, other: Position) -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class Size:
    """Fixed footprint of a rendered node."""
    width: float
    height: float


# =============================================================================
# GRAPH ELEMENTS
# =============================================================================

@dataclass(frozen=True)
class Node:
    """
    One goal or project in the relationship graph.

    `position` has no meaning before a layout pass; after one it holds the
    node's slot around the focal node.
    """
    node_id: str
    kind: NodeKind
    status: NodeStatus
    completion_percent: float
    label: str = ""
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=lambda: Size(180, 80))
    raw_id: str = ""

    def __post_init__(self):
        if not self.node_id or not isinstance(self.node_id, str):
            raise ValueError("Node id must be a non-empty string")

    def with_position(self, position: Position) -> Node:
        return replace(self, position=position)

    def with_completion(self, completion_percent: float) -> Node:
        return replace(self, completion_percent=completion_percent)


@dataclass(frozen=True)
class Edge:
    """
    Weighted link between two nodes.

    Direction carries the relation semantics only; layout and aggregation
    walk edges in both directions. `anchor_id` names the goal whose link
    set owns `weight`, `category` which of its two link sets.
    """
    edge_id: str
    from_id: str
    to_id: str
    relation: Relation
    weight: float
    category: LinkCategory
    anchor_id: str

    def touches(self, node_id: str) -> bool:
        return self.from_id == node_id or self.to_id == node_id

    def other_end(self, node_id: str) -> Optional[str]:
        """Endpoint opposite `node_id`, or None if the edge does not touch it."""
        if self.from_id == node_id:
            return self.to_id
        if self.to_id == node_id:
            return self.from_id
        return None

    def with_weight(self, weight: float) -> Edge:
        return replace(self, weight=weight)

    @property
    def impact(self) -> ImpactLevel:
        return ImpactLevel.for_weight(self.weight)


@dataclass(frozen=True)
class WeightedLink:
    """A (node, weight) pair feeding progress aggregation."""
    node_id: str
    weight: float


def links_from_weights(weights) -> Tuple[WeightedLink, ...]:
    """Turn an id -> weight mapping into links, preserving key order."""
    return tuple(WeightedLink(node_id=k, weight=v) for k, v in weights.items())
