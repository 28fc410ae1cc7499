"""
Radial Layout Engine Tests
==========================

Ring geometry, edge-order tie-breaking, cycle handling and the
"leave as is" failure semantics.
"""

import math

import pytest

from relationship_graph.contracts.base import (
    Edge, LinkCategory, Node, NodeKind, NodeStatus, Position, Relation,
)
from relationship_graph.contracts.diagnostics import DiagnosticCode
from relationship_graph.core.layout import LayoutConfig, RadialLayoutEngine, radial_layout
from relationship_graph.observability import DiagnosticsCollector


def create_node(node_id: str, position: Position = None) -> Node:
    kind = NodeKind.PROJECT if node_id.startswith("project") else NodeKind.GOAL
    return Node(
        node_id=node_id,
        kind=kind,
        status=NodeStatus.IN_PROGRESS,
        completion_percent=0,
        position=position or Position(),
    )


def create_edge(source: str, target: str, relation: Relation = Relation.RELATED_TO, weight: float = 50) -> Edge:
    return Edge(
        edge_id=f"{source}->{target}",
        from_id=source,
        to_id=target,
        relation=relation,
        weight=weight,
        category=LinkCategory.GOAL_LINK,
        anchor_id=source,
    )


def positions(nodes):
    return {n.node_id: n.position for n in nodes}


def approx_position(x, y):
    return (pytest.approx(x, abs=1e-9), pytest.approx(y, abs=1e-9))


def xy(position: Position):
    return (position.x, position.y)


class TestRadialLayout:

    def test_two_neighbours_split_full_circle(self):
        """A->X and A->B land at angles 0 and pi on a 300 circle, in edge order."""
        nodes = [create_node("goal-A"), create_node("goal-B"), create_node("project-X")]
        edges = [
            create_edge("goal-A", "project-X", Relation.SUPPORTS, 60),
            create_edge("goal-A", "goal-B", Relation.RELATED_TO, 40),
        ]

        result = positions(radial_layout(nodes, edges, "goal-A", 300, (0, 2 * math.pi)))

        assert xy(result["project-X"]) == approx_position(300, 0)
        assert xy(result["goal-B"]) == approx_position(-300, 0)
        assert xy(result["goal-A"]) == (0, 0)

    def test_focal_position_is_the_centre(self):
        nodes = [create_node("goal-A", Position(100, 50)), create_node("goal-B")]
        result = positions(radial_layout(nodes, [create_edge("goal-A", "goal-B")], "goal-A"))

        assert xy(result["goal-A"]) == (100, 50)
        assert xy(result["goal-B"]) == approx_position(400, 50)

    def test_incoming_edges_count_as_neighbours(self):
        nodes = [create_node("goal-A"), create_node("project-P")]
        result = positions(radial_layout(nodes, [create_edge("project-P", "goal-A")], "goal-A"))

        assert xy(result["project-P"]) == approx_position(300, 0)

    def test_unknown_focal_returns_input(self):
        nodes = [create_node("goal-A", Position(1, 2)), create_node("goal-B", Position(3, 4))]
        result = radial_layout(nodes, [create_edge("goal-A", "goal-B")], "goal-Z")

        assert result == nodes
        assert result is not nodes

    def test_input_not_mutated(self):
        nodes = [create_node("goal-A"), create_node("goal-B")]
        edges = [create_edge("goal-A", "goal-B")]
        radial_layout(nodes, edges, "goal-A")

        assert nodes[1].position == Position()
        assert len(edges) == 1

    def test_output_keeps_input_order(self):
        nodes = [create_node("goal-C"), create_node("goal-A"), create_node("goal-B")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-A", "goal-C")]

        result = radial_layout(nodes, edges, "goal-A")
        assert [n.node_id for n in result] == ["goal-C", "goal-A", "goal-B"]

    def test_deterministic(self):
        nodes = [create_node(f"goal-{i}") for i in range(8)]
        edges = [create_edge(f"goal-{i}", f"goal-{(i * 3 + 1) % 8}") for i in range(8)]

        first = radial_layout(nodes, edges, "goal-0")
        second = radial_layout(nodes, edges, "goal-0")
        assert [xy(n.position) for n in first] == [xy(n.position) for n in second]

    def test_child_sits_in_parent_sub_window(self):
        """Single child of a ring-1 node at angle 0 stays on angle 0, 240 further out."""
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-B", "goal-C")]

        result = positions(radial_layout(nodes, edges, "goal-A"))

        assert xy(result["goal-B"]) == approx_position(300, 0)
        assert xy(result["goal-C"]) == approx_position(540, 0)

    def test_two_children_split_quarter_window(self):
        """Parent slice 2*pi -> sub-window [-pi/2, pi/2] -> children at -pi/4, +pi/4."""
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C", "goal-D")]
        edges = [
            create_edge("goal-A", "goal-B"),
            create_edge("goal-B", "goal-C"),
            create_edge("goal-B", "goal-D"),
        ]

        result = positions(radial_layout(nodes, edges, "goal-A"))
        offset = 240 * math.cos(math.pi / 4)

        assert xy(result["goal-C"]) == approx_position(300 + offset, -offset)
        assert xy(result["goal-D"]) == approx_position(300 + offset, offset)

    def test_radius_shrinks_per_ring(self):
        chain = [f"goal-{i}" for i in range(5)]
        nodes = [create_node(n) for n in chain]
        edges = [create_edge(a, b) for a, b in zip(chain, chain[1:])]

        result = positions(radial_layout(nodes, edges, "goal-0"))

        assert result["goal-1"].distance_to(result["goal-0"]) == pytest.approx(300)
        assert result["goal-2"].distance_to(result["goal-1"]) == pytest.approx(240)
        assert result["goal-3"].distance_to(result["goal-2"]) == pytest.approx(192)
        # Fourth ring is beyond the default depth
        assert result["goal-4"] == Position()

    def test_max_depth_one(self):
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-B", "goal-C")]

        result = positions(radial_layout(nodes, edges, "goal-A", max_depth=1))

        assert xy(result["goal-B"]) == approx_position(300, 0)
        assert result["goal-C"] == Position()

    def test_half_window(self):
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-A", "goal-C")]

        result = positions(radial_layout(nodes, edges, "goal-A", 100, (0, math.pi)))

        assert xy(result["goal-B"]) == approx_position(100, 0)
        assert xy(result["goal-C"]) == approx_position(0, 100)

    def test_duplicate_edges_share_one_slot(self):
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [
            create_edge("goal-A", "goal-B"),
            create_edge("goal-A", "goal-B"),
            create_edge("goal-A", "goal-C"),
        ]

        result = positions(radial_layout(nodes, edges, "goal-A"))

        assert xy(result["goal-B"]) == approx_position(300, 0)
        assert xy(result["goal-C"]) == approx_position(-300, 0)

    def test_edges_to_unknown_nodes_take_no_slot(self):
        nodes = [create_node("goal-A"), create_node("goal-B")]
        edges = [create_edge("goal-A", "goal-GHOST"), create_edge("goal-A", "goal-B")]

        result = positions(radial_layout(nodes, edges, "goal-A"))
        assert xy(result["goal-B"]) == approx_position(300, 0)

    def test_disconnected_nodes_keep_position(self):
        nodes = [create_node("goal-A"), create_node("goal-B"), create_node("goal-Z", Position(5, 5))]
        result = positions(radial_layout(nodes, [create_edge("goal-A", "goal-B")], "goal-A"))

        assert result["goal-Z"] == Position(5, 5)

    def test_isolated_focal(self):
        nodes = [create_node("goal-A"), create_node("goal-B", Position(7, 7))]
        result = radial_layout(nodes, [], "goal-A")
        assert result == nodes


class TestCycles:

    def test_cycle_does_not_move_placed_nodes(self):
        """A-B-C-A: C is placed once on ring 1 and never re-placed from B."""
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [
            create_edge("goal-A", "goal-B"),
            create_edge("goal-B", "goal-C"),
            create_edge("goal-C", "goal-A"),
        ]

        result = RadialLayoutEngine().compute(nodes, edges, "goal-A")

        assert result.depth_of("goal-C") == 1
        assert xy(result.placement_of("goal-C").position) == approx_position(-300, 0)
        assert len(result.placements) == 2

    def test_shallowest_depth_wins(self):
        """B is listed first, but C is a direct neighbour so it stays on ring 1."""
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [
            create_edge("goal-A", "goal-B"),
            create_edge("goal-B", "goal-C"),
            create_edge("goal-A", "goal-C"),
        ]

        result = RadialLayoutEngine().compute(nodes, edges, "goal-A")

        assert result.depth_of("goal-B") == 1
        assert result.depth_of("goal-C") == 1

    def test_mutual_support_two_cycle(self):
        nodes = [create_node("goal-A"), create_node("goal-B")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-B", "goal-A")]

        result = RadialLayoutEngine().compute(nodes, edges, "goal-A")

        assert [p.node_id for p in result.placements] == ["goal-B"]

    def test_self_loop_ignored(self):
        nodes = [create_node("goal-A"), create_node("goal-B")]
        edges = [create_edge("goal-A", "goal-A"), create_edge("goal-A", "goal-B")]

        result = positions(radial_layout(nodes, edges, "goal-A"))
        assert xy(result["goal-A"]) == (0, 0)
        assert xy(result["goal-B"]) == approx_position(300, 0)


class TestRadialLayoutEngine:

    def test_unknown_focal_recorded(self):
        diagnostics = DiagnosticsCollector()
        result = RadialLayoutEngine(diagnostics=diagnostics).compute([create_node("goal-A")], [], "goal-X")

        assert result.applied is False
        assert result.depth_of("goal-X") is None
        assert diagnostics.get_entries(code=DiagnosticCode.UNKNOWN_FOCAL_NODE)

    def test_unreached_reported(self):
        diagnostics = DiagnosticsCollector()
        nodes = [create_node("goal-A"), create_node("goal-B"), create_node("goal-Z")]

        result = RadialLayoutEngine(diagnostics=diagnostics).compute(
            nodes, [create_edge("goal-A", "goal-B")], "goal-A"
        )

        assert result.unreached_ids == ("goal-Z",)
        assert diagnostics.get_entries(code=DiagnosticCode.UNREACHED_NODE)

    def test_config_and_overrides(self):
        engine = RadialLayoutEngine(LayoutConfig(base_radius=100, ring_decay=0.5))
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-B", "goal-C")]

        result = engine.compute(nodes, edges, "goal-A")
        assert result.placement_of("goal-B").radius == 100
        assert result.placement_of("goal-C").radius == 50

        overridden = engine.compute(nodes, edges, "goal-A", base_radius=10)
        assert overridden.placement_of("goal-C").radius == 5

    def test_placement_lookup_by_node(self):
        nodes = [create_node(f"goal-{i}") for i in range(6)]
        edges = [create_edge("goal-0", f"goal-{i}") for i in range(1, 6)]

        result = RadialLayoutEngine().compute(nodes, edges, "goal-0")

        for placement in result.placements:
            assert result.placement_of(placement.node_id) is placement
        assert result.placement_of("goal-0") is None
        assert result == RadialLayoutEngine().compute(nodes, edges, "goal-0")

    def test_placement_records_parent(self):
        nodes = [create_node(n) for n in ("goal-A", "goal-B", "goal-C")]
        edges = [create_edge("goal-A", "goal-B"), create_edge("goal-B", "goal-C")]

        result = RadialLayoutEngine().compute(nodes, edges, "goal-A")

        assert result.placement_of("goal-B").parent_id == "goal-A"
        assert result.placement_of("goal-C").parent_id == "goal-B"
        assert result.depth_of("goal-A") == 0
        assert result.depth_of("goal-C") == 2
