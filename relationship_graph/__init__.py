"""
Relationship Graph Engine

Pure, deterministic core behind the goal/project relationship views:

1. GRAPH BUILDER (core/builder.py)
   - Goal and project records -> namespaced nodes and weighted edges
   - MUST NOT: fail on stale references (they are dropped and recorded)

2. WEIGHT NORMALIZER (core/weights.py)
   - Sibling link weights -> weights summing to exactly 100
   - MUST NOT: keep weight maps as module state

3. PROGRESS AGGREGATOR (core/progress.py)
   - Weighted links -> rounded weighted-average completion
   - MUST NOT: write the result anywhere

4. RADIAL LAYOUT ENGINE (core/layout.py)
   - Graph + focal node -> positions on shrinking concentric rings
   - MUST NOT: raise, mutate its inputs, or move a node twice

Supporting: contracts/ (immutable data), core/topology.py (networkx
structure), observability/ (diagnostics), view.py (render contracts),
engine.py (facade and configuration).
"""

import logging

from .engine import EngineConfig, RelationshipGraphEngine

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ['EngineConfig', 'RelationshipGraphEngine']
