"""
Graph Builder
=============

Turns goal and project records into a uniform node/edge graph.

GUARANTEES:
- One node per goal and per project, ids namespaced by kind
- One edge per declared link, no deduplication
- Edges to missing nodes are dropped and recorded, never raised
- Relation labels on goal-goal edges are display metadata only
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..contracts.base import (
    Edge, LinkCategory, Node, NodeKind, Relation, Size, node_id_for,
)
from ..contracts.diagnostics import DiagnosticCode
from ..contracts.records import GoalLink, GoalRecord, ProjectRecord
from ..observability import DiagnosticsCollector, record_diagnostic
from .graph import RelationshipGraph

logger = logging.getLogger(__name__)

RelationClassifier = Callable[[GoalRecord, GoalLink, Mapping[str, GoalRecord], float], Relation]


def classify_goal_relation(
    source: GoalRecord,
    link: GoalLink,
    goals_by_id: Mapping[str, GoalRecord],
    strong_support_threshold: float = 75
) -> Relation:
    """
    Deterministic display label for a goal -> goal link.

    A heavier link back from the target reads as SUPPORTED_BY, a strong
    link as SUPPORTS, anything else as RELATED_TO.
    """
    target = goals_by_id.get(link.goal_id)
    if target is not None:
        for back in target.linked_goals:
            if back.goal_id == source.goal_id and back.weight > link.weight:
                return Relation.SUPPORTED_BY
    if link.weight >= strong_support_threshold:
        return Relation.SUPPORTS
    return Relation.RELATED_TO


def _default_node_sizes() -> Dict[NodeKind, Size]:
    return {
        NodeKind.GOAL: Size(width=180, height=80),
        NodeKind.PROJECT: Size(width=180, height=80),
    }


@dataclass
class BuilderConfig:
    """Configuration for graph construction."""
    node_sizes: Dict[NodeKind, Size] = field(default_factory=_default_node_sizes)
    strong_support_threshold: float = 75
    relation_classifier: RelationClassifier = classify_goal_relation


class GraphBuilder:
    """
    Builds RelationshipGraph snapshots from domain records.

    Replaces nothing and keeps nothing: every build starts from scratch.
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        diagnostics: Optional[DiagnosticsCollector] = None
    ):
        self._config = config or BuilderConfig()
        self._diagnostics = diagnostics

    # =========================================================================
    # RECORD LOADING
    # =========================================================================

    def load_goals(self, payloads: Iterable[Mapping[str, Any]]) -> List[GoalRecord]:
        return self._load(payloads, GoalRecord.from_dict, "goal")

    def load_projects(self, payloads: Iterable[Mapping[str, Any]]) -> List[ProjectRecord]:
        return self._load(payloads, ProjectRecord.from_dict, "project")

    def _load(self, payloads, factory, kind: str) -> list:
        records = []
        for index, payload in enumerate(payloads or ()):
            try:
                records.append(factory(payload))
            except (ValueError, TypeError) as e:
                self._record(
                    DiagnosticCode.MALFORMED_RECORD,
                    f"skipped malformed {kind} payload: {e}",
                    index=index,
                )
        return records

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(
        self,
        goals: Sequence[GoalRecord],
        projects: Sequence[ProjectRecord]
    ) -> RelationshipGraph:
        """Build the full goal + project graph."""
        goals = self._unique(goals, lambda g: g.goal_id, "goal")
        projects = self._unique(projects, lambda p: p.project_id, "project")

        nodes = [self._project_node(p) for p in projects]
        nodes.extend(self._goal_node(g) for g in goals)

        candidates = self._project_edges(goals) + self._goal_edges(goals)
        graph = self._assemble(nodes, candidates)

        logger.info(
            "built relationship graph: %d nodes, %d edges",
            len(graph.nodes), len(graph.edges)
        )
        return graph

    def build_goal_graph(self, goals: Sequence[GoalRecord]) -> RelationshipGraph:
        """Goal-only graph: goal nodes and goal-goal edges."""
        goals = self._unique(goals, lambda g: g.goal_id, "goal")
        nodes = [self._goal_node(g) for g in goals]
        return self._assemble(nodes, self._goal_edges(goals))

    def _assemble(self, nodes: List[Node], candidates: List[Edge]) -> RelationshipGraph:
        known = {n.node_id for n in nodes}
        edges: List[Edge] = []
        seen_ids: Dict[str, int] = {}

        for edge in candidates:
            if edge.from_id not in known or edge.to_id not in known:
                missing = edge.from_id if edge.from_id not in known else edge.to_id
                self._record(
                    DiagnosticCode.DANGLING_EDGE,
                    f"dropped edge {edge.edge_id}: {missing} not in graph",
                    subject_id=edge.anchor_id,
                    edge_id=edge.edge_id,
                    missing=missing,
                )
                continue

            count = seen_ids.get(edge.edge_id, 0) + 1
            seen_ids[edge.edge_id] = count
            if count > 1:
                unique_id = f"{edge.edge_id}#{count}"
                self._record(
                    DiagnosticCode.DUPLICATE_EDGE,
                    f"repeated link kept as {unique_id}",
                    subject_id=edge.anchor_id,
                    edge_id=edge.edge_id,
                )
                edge = Edge(
                    edge_id=unique_id,
                    from_id=edge.from_id,
                    to_id=edge.to_id,
                    relation=edge.relation,
                    weight=edge.weight,
                    category=edge.category,
                    anchor_id=edge.anchor_id,
                )
            edges.append(edge)

        return RelationshipGraph(nodes=tuple(nodes), edges=tuple(edges))

    def _unique(self, records, key, kind: str) -> list:
        # First record wins on a repeated raw id.
        seen = set()
        unique = []
        for record in records:
            record_id = key(record)
            if record_id in seen:
                self._record(
                    DiagnosticCode.MALFORMED_RECORD,
                    f"duplicate {kind} id ignored",
                    subject_id=node_id_for(NodeKind(kind), record_id),
                )
                continue
            seen.add(record_id)
            unique.append(record)
        return unique

    # =========================================================================
    # NODES & EDGES
    # =========================================================================

    def _goal_node(self, goal: GoalRecord) -> Node:
        return Node(
            node_id=node_id_for(NodeKind.GOAL, goal.goal_id),
            kind=NodeKind.GOAL,
            status=goal.status,
            completion_percent=goal.progress,
            label=goal.title,
            size=self._config.node_sizes[NodeKind.GOAL],
            raw_id=goal.goal_id,
        )

    def _project_node(self, project: ProjectRecord) -> Node:
        return Node(
            node_id=node_id_for(NodeKind.PROJECT, project.project_id),
            kind=NodeKind.PROJECT,
            status=project.status,
            completion_percent=project.progress,
            label=project.name,
            size=self._config.node_sizes[NodeKind.PROJECT],
            raw_id=project.project_id,
        )

    def _project_edges(self, goals: Sequence[GoalRecord]) -> List[Edge]:
        edges = []
        for goal in goals:
            goal_node = node_id_for(NodeKind.GOAL, goal.goal_id)
            for link in goal.linked_projects:
                edges.append(Edge(
                    edge_id=f"proj-goal-{link.project_id}-{goal.goal_id}",
                    from_id=node_id_for(NodeKind.PROJECT, link.project_id),
                    to_id=goal_node,
                    relation=Relation.SUPPORTS,
                    weight=link.weight,
                    category=LinkCategory.PROJECT_LINK,
                    anchor_id=goal_node,
                ))
        return edges

    def _goal_edges(self, goals: Sequence[GoalRecord]) -> List[Edge]:
        goals_by_id = {g.goal_id: g for g in goals}
        classify = self._config.relation_classifier
        threshold = self._config.strong_support_threshold

        edges = []
        for goal in goals:
            goal_node = node_id_for(NodeKind.GOAL, goal.goal_id)
            for link in goal.linked_goals:
                edges.append(Edge(
                    edge_id=f"goal-goal-{goal.goal_id}-{link.goal_id}",
                    from_id=goal_node,
                    to_id=node_id_for(NodeKind.GOAL, link.goal_id),
                    relation=classify(goal, link, goals_by_id, threshold),
                    weight=link.weight,
                    category=LinkCategory.GOAL_LINK,
                    anchor_id=goal_node,
                ))
        return edges

    def _record(self, code: DiagnosticCode, message: str, subject_id: Optional[str] = None, **context):
        record_diagnostic(self._diagnostics, code, "builder", message, subject_id, **context)


def build(
    goals: Sequence[GoalRecord],
    projects: Sequence[ProjectRecord]
) -> Tuple[Tuple[Node, ...], Tuple[Edge, ...]]:
    """Build (nodes, edges) with default configuration."""
    graph = GraphBuilder().build(goals, projects)
    return graph.nodes, graph.edges
