"""Tests for SpatialGraph shortest-path distances.

Test categories:
- TestGraphConstruction: node overwrite, mirrored edges, build()
- TestShortestPath: known distances, shortcut edges, zero weights
- TestGraphProperties: symmetry, self distance, unreachable sentinel
- TestDegenerateEdges: self-loops, parallel edges, dangling endpoints
- TestSearchExpansion: early exit once the target is settled
"""

from __future__ import annotations

import random

import pytest

from tow_dispatch import UNREACHABLE, Edge, Node, SpatialGraph


def make_graph(node_ids, edges) -> SpatialGraph:
    return SpatialGraph.build(
        [Node(i, 0, 0, area_id=1) for i in node_ids],
        [Edge(a, b, w) for a, b, w in edges],
    )


# ── TestGraphConstruction ─────────────────────────────────────


class TestGraphConstruction:
    def test_add_node_overwrites_by_id(self):
        graph = SpatialGraph()
        graph.add_node(Node(1, 0, 0))
        graph.add_node(Node(1, 3, 4))
        assert len(graph) == 1
        assert graph.nodes[1].x == 3

    def test_add_edge_is_mirrored(self):
        graph = SpatialGraph()
        graph.add_edge(Edge(1, 2, 7))
        assert graph.neighbors(1) == [Edge(1, 2, 7)]
        assert graph.neighbors(2) == [Edge(2, 1, 7)]

    def test_neighbors_of_unknown_node_is_empty(self):
        assert SpatialGraph().neighbors(42) == []

    def test_build_collects_nodes_and_edges(self):
        graph = make_graph([1, 2, 3], [(1, 2, 1), (2, 3, 1)])
        assert 1 in graph and 3 in graph
        assert 4 not in graph
        assert len(graph.neighbors(2)) == 2


# ── TestShortestPath ──────────────────────────────────────────


class TestShortestPath:
    def test_two_hop_path(self):
        graph = make_graph([1, 2, 3], [(1, 2, 5), (2, 3, 3)])
        assert graph.shortest_path(1, 3) == 8

    def test_shortcut_edge_wins(self):
        graph = make_graph([1, 2, 3], [(1, 2, 5), (2, 3, 3)])
        graph.add_edge(Edge(1, 3, 4))
        assert graph.shortest_path(1, 3) == 4

    def test_longer_hop_count_can_be_cheaper(self):
        graph = make_graph(
            [1, 2, 3, 4, 5],
            [(1, 5, 100), (1, 2, 1), (2, 3, 1), (3, 4, 1), (4, 5, 1)],
        )
        assert graph.shortest_path(1, 5) == 4

    def test_zero_weight_edges(self):
        graph = make_graph([1, 2, 3], [(1, 2, 0), (2, 3, 0)])
        assert graph.shortest_path(1, 3) == 0

    def test_equal_cost_paths(self):
        graph = make_graph([1, 2, 3, 4], [(1, 2, 2), (2, 4, 2), (1, 3, 2), (3, 4, 2)])
        assert graph.shortest_path(1, 4) == 4

    def test_seeded_area_map(self, memory_store):
        graph = SpatialGraph.build(memory_store.get_nodes(1), memory_store.get_edges(1))
        assert graph.shortest_path(1, 4) == 12
        assert graph.shortest_path(3, 6) == 6
        assert graph.shortest_path(1, 6) == 14


# ── TestGraphProperties ───────────────────────────────────────


class TestGraphProperties:
    def test_distance_to_self_is_zero(self):
        graph = make_graph([1, 2], [(1, 2, 9)])
        assert graph.shortest_path(1, 1) == 0
        assert graph.shortest_path(2, 2) == 0

    def test_undirected_symmetry_on_random_graph(self):
        rng = random.Random(7)
        node_ids = list(range(1, 16))
        edges = [
            (rng.choice(node_ids), rng.choice(node_ids), rng.randint(0, 20))
            for _ in range(30)
        ]
        graph = make_graph(node_ids, edges)
        for a in node_ids:
            for b in node_ids:
                assert graph.shortest_path(a, b) == graph.shortest_path(b, a)

    def test_disconnected_nodes_are_unreachable(self):
        graph = make_graph([1, 2, 3], [(1, 2, 1)])
        assert graph.shortest_path(1, 3) == UNREACHABLE
        assert graph.shortest_path(3, 1) == UNREACHABLE

    @pytest.mark.parametrize("from_id,to_id", [(1, 99), (99, 1)])
    def test_absent_node_is_unreachable(self, from_id, to_id):
        graph = make_graph([1, 2], [(1, 2, 1)])
        assert graph.shortest_path(from_id, to_id) == UNREACHABLE

    def test_empty_graph(self):
        assert SpatialGraph().shortest_path(1, 2) == UNREACHABLE


# ── TestDegenerateEdges ───────────────────────────────────────


class TestDegenerateEdges:
    def test_self_loop_is_tolerated(self):
        graph = make_graph([1, 2], [(1, 1, 3), (1, 2, 4)])
        assert graph.shortest_path(1, 2) == 4
        assert graph.shortest_path(1, 1) == 0

    def test_parallel_edges_use_cheapest(self):
        graph = make_graph([1, 2], [(1, 2, 9), (1, 2, 2), (2, 1, 5)])
        assert graph.shortest_path(1, 2) == 2
        assert graph.shortest_path(2, 1) == 2

    def test_edges_to_nodes_outside_graph_are_not_followed(self):
        # Node 3 belongs to another area and was not added.
        graph = make_graph([1, 2], [(1, 3, 1), (3, 2, 1), (1, 2, 10)])
        assert graph.shortest_path(1, 2) == 10


# ── TestSearchExpansion ───────────────────────────────────────


class ExpansionRecordingGraph(SpatialGraph):
    """SpatialGraph that records every node whose neighbors are read."""

    def __init__(self) -> None:
        super().__init__()
        self.expanded: list[int] = []

    def neighbors(self, node_id: int) -> list[Edge]:
        self.expanded.append(node_id)
        return super().neighbors(node_id)


def recording_graph(node_ids, edges) -> ExpansionRecordingGraph:
    return ExpansionRecordingGraph.build(
        [Node(i, 0, 0, area_id=1) for i in node_ids],
        [Edge(a, b, w) for a, b, w in edges],
    )


class TestSearchExpansion:
    def test_stops_once_target_is_settled(self):
        # Star: target 2 is one hop away, 98 decoys at distance 50.
        edges = [(1, 2, 1)] + [(1, i, 50) for i in range(3, 101)]
        graph = recording_graph(range(1, 101), edges)

        assert graph.shortest_path(1, 2) == 1
        assert graph.expanded == [1]

    def test_nodes_beyond_target_distance_not_expanded(self):
        # Chain 1-2-3 with a far branch 1-4-5.
        graph = recording_graph([1, 2, 3, 4, 5], [(1, 2, 1), (2, 3, 1), (1, 4, 10), (4, 5, 1)])

        assert graph.shortest_path(1, 3) == 2
        assert graph.expanded == [1, 2]

    def test_no_expansion_for_trivial_queries(self):
        graph = recording_graph([1, 2], [(1, 2, 1)])

        assert graph.shortest_path(1, 1) == 0
        assert graph.shortest_path(1, 99) == UNREACHABLE
        assert graph.expanded == []
