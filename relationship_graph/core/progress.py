"""
Progress Aggregator
===================

Rollup of a node's completion from its weighted links.

GUARANTEES:
- Read-only: never writes a completion value anywhere
- Links that cannot be resolved count toward neither numerator nor denominator
- Empty input, or zero resolvable weight, yields 0
- Whether a goal uses the rollup or a manual value is the caller's toggle
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ..contracts.base import NodeKind, WeightedLink, node_id_for
from ..contracts.diagnostics import DiagnosticCode
from ..contracts.records import GoalRecord, ProjectRecord
from ..observability import DiagnosticsCollector, record_diagnostic
from .weights import round_half_up

logger = logging.getLogger(__name__)

CompletionResolver = Callable[[str], Optional[float]]


def aggregate(
    links: Sequence[WeightedLink],
    resolve_completion: CompletionResolver
) -> int:
    """Weight-weighted average of resolvable link completions, rounded half up."""
    if not links:
        return 0

    weighted_progress = 0.0
    total_weight = 0.0
    for link in links:
        completion = resolve_completion(link.node_id)
        if completion is None:
            continue
        weighted_progress += completion * link.weight
        total_weight += link.weight

    if total_weight == 0:
        return 0
    return round_half_up(weighted_progress / total_weight)


def resolver_from_mapping(completions: Mapping[str, float]) -> CompletionResolver:
    return completions.get


def resolver_from_graph(graph) -> CompletionResolver:
    """Resolve node ids against a RelationshipGraph's node completions."""
    def resolve(node_id: str) -> Optional[float]:
        node = graph.node(node_id)
        return node.completion_percent if node is not None else None
    return resolve


class ProgressAggregator:
    """Aggregator that records unresolvable links as diagnostics."""

    def __init__(self, diagnostics: Optional[DiagnosticsCollector] = None):
        self._diagnostics = diagnostics

    def aggregate(
        self,
        links: Sequence[WeightedLink],
        resolve_completion: CompletionResolver,
        subject_id: Optional[str] = None
    ) -> int:
        def tracking_resolver(node_id: str) -> Optional[float]:
            completion = resolve_completion(node_id)
            if completion is None:
                record_diagnostic(
                    self._diagnostics,
                    DiagnosticCode.UNRESOLVED_LINK,
                    "progress",
                    f"link target {node_id} could not be resolved",
                    subject_id=subject_id,
                    target=node_id,
                )
            return completion

        return aggregate(links, tracking_resolver)

    def goal_rollup(
        self,
        goal: GoalRecord,
        projects_by_id: Mapping[str, ProjectRecord],
        goals_by_id: Optional[Mapping[str, GoalRecord]] = None,
        include_goal_links: bool = False
    ) -> int:
        """
        Rollup of one goal.

        Linked projects always contribute. Linked goals contribute their
        stored progress when `include_goal_links` is set; their own rollups
        are not recomputed (no recursion through goal cycles).
        """
        completions: Dict[str, float] = {}
        links: List[WeightedLink] = []

        for link in goal.linked_projects:
            node_id = node_id_for(NodeKind.PROJECT, link.project_id)
            links.append(WeightedLink(node_id=node_id, weight=link.weight))
            project = projects_by_id.get(link.project_id)
            if project is not None:
                completions[node_id] = project.progress

        if include_goal_links and goals_by_id is not None:
            for link in goal.linked_goals:
                node_id = node_id_for(NodeKind.GOAL, link.goal_id)
                links.append(WeightedLink(node_id=node_id, weight=link.weight))
                target = goals_by_id.get(link.goal_id)
                if target is not None:
                    completions[node_id] = target.progress

        subject = node_id_for(NodeKind.GOAL, goal.goal_id)
        return self.aggregate(links, completions.get, subject_id=subject)

    def apply_auto_progress(
        self,
        goals: Iterable[GoalRecord],
        projects: Iterable[ProjectRecord],
        include_goal_links: bool = False
    ) -> List[GoalRecord]:
        """
        Return goals with rollups applied to the auto-calculated ones.

        Goal-link rollups read the stored progress of the input goals,
        so the result does not depend on goal order.
        """
        goals = list(goals)
        projects_by_id = {p.project_id: p for p in projects}
        goals_by_id = {g.goal_id: g for g in goals}

        updated = []
        changed = 0
        for goal in goals:
            if not goal.is_progress_auto_calculated:
                updated.append(goal)
                continue
            progress = self.goal_rollup(goal, projects_by_id, goals_by_id, include_goal_links)
            if progress != goal.progress:
                changed += 1
            updated.append(goal.with_progress(progress))

        logger.info("auto progress refreshed for %d goals (%d changed)", len(updated), changed)
        return updated
