"""
Engine Orchestration Module

Unified interface over builder, normalizer, aggregator, layout and
topology for the surrounding application (data providers, edit surfaces,
visualization).

DESIGN PRINCIPLES:
==================
1. Components communicate ONLY through contracts
2. The engine composes calls; it holds no graph between them
3. Degraded input becomes a Diagnostic, never an exception
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .contracts.base import LinkCategory, NodeKind, WeightedLink, node_id_for
from .contracts.records import GoalRecord, ProjectRecord
from .core.builder import BuilderConfig, GraphBuilder
from .core.graph import RelationshipGraph
from .core.layout import LayoutConfig, LayoutResult, RadialLayoutEngine
from .core.progress import ProgressAggregator, resolver_from_graph
from .core.topology import RelationshipTopology
from .core.weights import WeightConfig, WeightEditSession, WeightNormalizer, ZeroSumPolicy
from .observability import DiagnosticsCollector
from .view import NetworkGraphView

logger = logging.getLogger(__name__)

ENV_PREFIX = "RELGRAPH_"


def _env_value(environ: Mapping[str, str], name: str, parse, default):
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return parse(raw)
    except ValueError:
        logger.warning("ignoring invalid %s%s=%r, using %r", ENV_PREFIX, name, raw, default)
        return default


@dataclass
class EngineConfig:
    """Unified configuration for the graph engine."""
    builder: BuilderConfig = None
    weights: WeightConfig = None
    layout: LayoutConfig = None
    include_goal_links_in_rollup: bool = False

    def __post_init__(self):
        self.builder = self.builder or BuilderConfig()
        self.weights = self.weights or WeightConfig()
        self.layout = self.layout or LayoutConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
        """
        Defaults overridden by RELGRAPH_* variables.

        RELGRAPH_BASE_RADIUS, RELGRAPH_RING_DECAY, RELGRAPH_MAX_DEPTH,
        RELGRAPH_ZERO_SUM_POLICY (leave | distribute_evenly),
        RELGRAPH_SUPPORT_THRESHOLD.
        """
        environ = os.environ if environ is None else environ
        layout = LayoutConfig()
        builder = BuilderConfig()

        layout.base_radius = _env_value(environ, "BASE_RADIUS", float, layout.base_radius)
        layout.ring_decay = _env_value(environ, "RING_DECAY", float, layout.ring_decay)
        layout.max_depth = _env_value(environ, "MAX_DEPTH", int, layout.max_depth)
        builder.strong_support_threshold = _env_value(
            environ, "SUPPORT_THRESHOLD", float, builder.strong_support_threshold
        )
        policy = _env_value(
            environ, "ZERO_SUM_POLICY", lambda v: ZeroSumPolicy(v.strip().lower()),
            ZeroSumPolicy.LEAVE
        )
        return cls(builder=builder, weights=WeightConfig(zero_sum_policy=policy), layout=layout)


class RelationshipGraphEngine:
    """
    Facade over the relationship graph components.

    FLOW:
    =====
    1. Builder: records -> RelationshipGraph
    2. Normalizer: link set weights -> weights summing to 100
    3. Aggregator: weighted links -> rollup completion
    4. Layout: graph + focal node -> positions
    5. Topology: structural metrics for the rendered view
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        diagnostics: Optional[DiagnosticsCollector] = None
    ):
        self._config = config or EngineConfig()
        self._diagnostics = diagnostics or DiagnosticsCollector()

        self._builder = GraphBuilder(self._config.builder, self._diagnostics)
        self._normalizer = WeightNormalizer(self._config.weights, self._diagnostics)
        self._aggregator = ProgressAggregator(self._diagnostics)
        self._layout = RadialLayoutEngine(self._config.layout, self._diagnostics)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def diagnostics(self) -> DiagnosticsCollector:
        return self._diagnostics

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(
        self,
        goals: Sequence[GoalRecord],
        projects: Sequence[ProjectRecord]
    ) -> RelationshipGraph:
        return self._builder.build(goals, projects)

    def build_from_dicts(
        self,
        goal_payloads: Iterable[Mapping[str, Any]],
        project_payloads: Iterable[Mapping[str, Any]]
    ) -> RelationshipGraph:
        """Build from camelCase payloads; malformed payloads are skipped."""
        goals = self._builder.load_goals(goal_payloads)
        projects = self._builder.load_projects(project_payloads)
        return self._builder.build(goals, projects)

    # =========================================================================
    # LAYOUT & VIEWS
    # =========================================================================

    def layout(self, graph: RelationshipGraph, focal_id: str) -> LayoutResult:
        return self._layout.compute(graph.nodes, graph.edges, focal_id)

    def render(self, graph: RelationshipGraph, focal_id: str) -> NetworkGraphView:
        """Lay the graph out around `focal_id` and package it for rendering."""
        result = self.layout(graph, focal_id)
        topology = RelationshipTopology().build(graph.nodes, graph.edges)
        if result.applied:
            expected = topology.unreachable_from(focal_id, cutoff=self._config.layout.max_depth)
            if expected != set(result.unreached_ids):
                logger.warning(
                    "layout around %s left %d nodes unreached, topology expects %d",
                    focal_id, len(result.unreached_ids), len(expected)
                )
        return NetworkGraphView.from_layout(result, graph.edges, topology)

    def goal_mind_map(
        self,
        goals: Sequence[GoalRecord],
        center_goal_id: str
    ) -> NetworkGraphView:
        """Goal-to-goal map centred on a raw goal id."""
        graph = self._builder.build_goal_graph(goals)
        return self.render(graph, node_id_for(NodeKind.GOAL, center_goal_id))

    def project_goal_mind_map(
        self,
        projects: Sequence[ProjectRecord],
        goals: Sequence[GoalRecord],
        center_id: str,
        center_kind: NodeKind = NodeKind.GOAL
    ) -> NetworkGraphView:
        """Project-to-goal map centred on a raw project or goal id."""
        graph = self._builder.build(goals, projects)
        return self.render(graph, node_id_for(center_kind, center_id))

    # =========================================================================
    # WEIGHTS
    # =========================================================================

    def renormalize(
        self,
        graph: RelationshipGraph,
        anchor_id: str,
        category: LinkCategory
    ) -> RelationshipGraph:
        """New snapshot with one link set normalized to sum to 100."""
        weights = graph.sibling_weights(anchor_id, category)
        normalized = self._normalizer.normalize(weights, anchor_id)
        return graph.with_sibling_weights(anchor_id, category, normalized)

    def renormalize_all(self, graph: RelationshipGraph) -> RelationshipGraph:
        for anchor_id, category in graph.anchors():
            graph = self.renormalize(graph, anchor_id, category)
        return graph

    def edit_session(
        self,
        graph: RelationshipGraph,
        anchor_id: str,
        category: LinkCategory
    ) -> WeightEditSession:
        """Edit session over one link set, keyed by edge id."""
        return WeightEditSession(
            anchor_id,
            category,
            graph.sibling_weights(anchor_id, category),
            normalizer=self._normalizer,
        )

    def commit_session(
        self,
        graph: RelationshipGraph,
        session: WeightEditSession
    ) -> RelationshipGraph:
        return graph.with_sibling_weights(session.anchor_id, session.category, session.weights)

    # =========================================================================
    # PROGRESS
    # =========================================================================

    def rollup(
        self,
        goal: GoalRecord,
        projects: Sequence[ProjectRecord],
        goals: Optional[Sequence[GoalRecord]] = None
    ) -> int:
        return self._aggregator.goal_rollup(
            goal,
            {p.project_id: p for p in projects},
            {g.goal_id: g for g in goals} if goals is not None else None,
            include_goal_links=self._config.include_goal_links_in_rollup,
        )

    def node_rollup(
        self,
        graph: RelationshipGraph,
        anchor_id: str,
        category: LinkCategory = LinkCategory.PROJECT_LINK
    ) -> int:
        """Rollup of a node from one of its link sets within a built graph."""
        links: List[WeightedLink] = [
            WeightedLink(node_id=e.other_end(anchor_id), weight=e.weight)
            for e in graph.sibling_edges(anchor_id, category)
        ]
        return self._aggregator.aggregate(links, resolver_from_graph(graph), subject_id=anchor_id)

    def refresh_progress(
        self,
        goals: Sequence[GoalRecord],
        projects: Sequence[ProjectRecord]
    ) -> List[GoalRecord]:
        return self._aggregator.apply_auto_progress(
            goals, projects, include_goal_links=self._config.include_goal_links_in_rollup
        )
