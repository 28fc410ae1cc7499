"""
Contracts Module

Immutable data shared by every component of the relationship graph engine.
No component imports another component's implementation to exchange data;
they exchange these types.
"""

from .base import (
    NodeKind, NodeStatus, Relation, LinkCategory, ImpactLevel,
    Position, Size, Node, Edge, WeightedLink,
    node_id_for, links_from_weights,
)
from .records import GoalLink, ProjectLink, GoalRecord, ProjectRecord
from .diagnostics import Diagnostic, DiagnosticCode

__all__ = [
    'NodeKind', 'NodeStatus', 'Relation', 'LinkCategory', 'ImpactLevel',
    'Position', 'Size', 'Node', 'Edge', 'WeightedLink',
    'node_id_for', 'links_from_weights',
    'GoalLink', 'ProjectLink', 'GoalRecord', 'ProjectRecord',
    'Diagnostic', 'DiagnosticCode',
]
