"""
Core Graph Engines

Builder -> weights -> progress -> layout. Each consumes the previous
layer's output and none keeps state between calls.
"""

from .graph import RelationshipGraph
from .builder import BuilderConfig, GraphBuilder, build, classify_goal_relation
from .weights import (
    WeightConfig, WeightNormalizer, WeightEditSession, ZeroSumPolicy,
    normalize, seed_equal_weights, round_half_up,
)
from .progress import (
    ProgressAggregator, aggregate, resolver_from_graph, resolver_from_mapping,
)
from .layout import (
    LayoutConfig, LayoutResult, Placement, RadialLayoutEngine, radial_layout,
)
from .topology import GraphMetrics, RelationshipTopology

__all__ = [
    'RelationshipGraph',
    'BuilderConfig', 'GraphBuilder', 'build', 'classify_goal_relation',
    'WeightConfig', 'WeightNormalizer', 'WeightEditSession', 'ZeroSumPolicy',
    'normalize', 'seed_equal_weights', 'round_half_up',
    'ProgressAggregator', 'aggregate', 'resolver_from_graph', 'resolver_from_mapping',
    'LayoutConfig', 'LayoutResult', 'Placement', 'RadialLayoutEngine', 'radial_layout',
    'GraphMetrics', 'RelationshipTopology',
]
