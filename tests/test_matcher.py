"""Tests for DispatchMatcher ranking and admissibility.

Test categories:
- TestRanking: ascending distance, truck id tie-break
- TestSelection: nearest pick, cutoff, empty and unreachable candidates
- TestAreaQueries: find_nearest against a seeded store, read-only
"""

from __future__ import annotations

import pytest

from tow_dispatch import (
    UNREACHABLE,
    DispatchMatcher,
    Edge,
    InMemoryBackend,
    Node,
    SpatialGraph,
    TowTruck,
)


def truck(truck_id: int, node_id: int) -> TowTruck:
    return TowTruck(id=truck_id, driver_id=100 + truck_id, status="available", node_id=node_id, area_id=1)


@pytest.fixture
def star_graph() -> SpatialGraph:
    """Order at node 0; trucks reachable at 12, 7 and 20."""
    return SpatialGraph.build(
        [Node(i, 0, 0, area_id=1) for i in range(5)],
        [Edge(0, 1, 12), Edge(0, 2, 7), Edge(0, 3, 20)],
    )


@pytest.fixture
def matcher() -> DispatchMatcher:
    store = InMemoryBackend()
    return DispatchMatcher(store, store)


# ── TestRanking ───────────────────────────────────────────────


class TestRanking:
    def test_sorted_by_distance(self, star_graph):
        ranked = DispatchMatcher.rank(star_graph, 0, [truck(1, 1), truck(2, 2), truck(3, 3)])
        assert [c.distance for c in ranked] == [7, 12, 20]
        assert [c.truck.id for c in ranked] == [2, 1, 3]

    def test_ties_broken_by_truck_id(self, star_graph):
        ranked = DispatchMatcher.rank(star_graph, 0, [truck(9, 2), truck(4, 2), truck(6, 2)])
        assert [c.truck.id for c in ranked] == [4, 6, 9]

    def test_unreachable_ranked_last(self, star_graph):
        ranked = DispatchMatcher.rank(star_graph, 0, [truck(1, 4), truck(2, 3)])
        assert ranked[-1].distance == UNREACHABLE
        assert ranked[0].truck.id == 2


# ── TestSelection ─────────────────────────────────────────────


class TestSelection:
    def test_picks_nearest(self, matcher, star_graph):
        best = matcher.select(star_graph, 0, [truck(1, 1), truck(2, 2), truck(3, 3)])
        assert best is not None
        assert best.id == 2

    def test_empty_candidates(self, matcher, star_graph):
        assert matcher.select(star_graph, 0, []) is None

    def test_all_unreachable(self, matcher, star_graph):
        assert matcher.select(star_graph, 0, [truck(1, 4), truck(2, 99)]) is None

    def test_all_beyond_cutoff(self, star_graph):
        store = InMemoryBackend()
        strict = DispatchMatcher(store, store, admissibility_cutoff=5)
        assert strict.select(star_graph, 0, [truck(1, 1), truck(2, 2), truck(3, 3)]) is None

    def test_distance_equal_to_cutoff_is_admissible(self, star_graph):
        store = InMemoryBackend()
        edge = DispatchMatcher(store, store, admissibility_cutoff=7)
        best = edge.select(star_graph, 0, [truck(1, 1), truck(2, 2)])
        assert best is not None and best.id == 2

    def test_single_candidate_within_cutoff(self, matcher, star_graph):
        best = matcher.select(star_graph, 0, [truck(3, 3)])
        assert best is not None and best.id == 3

    def test_truck_on_order_node(self, matcher, star_graph):
        best = matcher.select(star_graph, 0, [truck(1, 1), truck(5, 0)])
        assert best.id == 5


# ── TestAreaQueries ───────────────────────────────────────────


class TestAreaQueries:
    def test_find_nearest_in_area(self, memory_store):
        matcher = DispatchMatcher(memory_store, memory_store)
        best = matcher.find_nearest(order_node_id=4, area_id=1)
        assert best is not None
        assert best.id == 2

    def test_trucks_of_other_areas_ignored(self, memory_store):
        matcher = DispatchMatcher(memory_store, memory_store)
        best = matcher.find_nearest(order_node_id=11, area_id=2)
        assert best.id == 4

    def test_busy_trucks_ignored(self, memory_store):
        memory_store.set_truck_status(2, "busy")
        matcher = DispatchMatcher(memory_store, memory_store)
        assert matcher.find_nearest(order_node_id=4, area_id=1).id == 1

    def test_no_available_trucks(self, memory_store):
        for tid in (1, 2, 3):
            memory_store.set_truck_status(tid, "busy")
        matcher = DispatchMatcher(memory_store, memory_store)
        assert matcher.find_nearest(order_node_id=4, area_id=1) is None

    def test_only_isolated_truck_available(self, memory_store):
        memory_store.set_truck_status(1, "busy")
        memory_store.set_truck_status(2, "busy")
        matcher = DispatchMatcher(memory_store, memory_store)
        assert matcher.find_nearest(order_node_id=4, area_id=1) is None

    def test_query_does_not_change_truck_state(self, memory_store):
        before = memory_store.list_trucks()
        DispatchMatcher(memory_store, memory_store).find_nearest(4, 1)
        assert memory_store.list_trucks() == before
