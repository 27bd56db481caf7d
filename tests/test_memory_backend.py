"""Tests for InMemoryBackend storage behavior.

Test categories:
- TestTruckLocations: latest location wins, history is kept, lookups per truck
- TestOrderCopies: reads return copies, not live records
"""

from __future__ import annotations

import pytest

from tow_dispatch import InMemoryBackend, Node, NotFoundError


# ── TestTruckLocations ────────────────────────────────────────


class TestTruckLocations:
    def test_latest_location_wins(self, memory_store):
        for node_id in (2, 3, 6):
            memory_store.set_truck_location(1, node_id)
        assert memory_store.get_truck(1).node_id == 6
        assert memory_store.get_truck(2).node_id == 3

    def test_history_is_kept(self, memory_store):
        memory_store.set_truck_location(1, 2)
        memory_store.set_truck_location(1, 4)
        history = [node for _, tid, node in memory_store._locations if tid == 1]
        assert history == [1, 2, 4]

    def test_listing_reflects_moves_of_many_trucks(self):
        store = InMemoryBackend()
        for node_id in range(1, 4):
            store.add_node(Node(node_id, 0, 0, area_id=1))
        truck_ids = [store.add_truck(driver_id=1, area_id=1, node_id=1) for _ in range(50)]
        for step in range(20):
            for tid in truck_ids:
                store.set_truck_location(tid, (tid + step) % 3 + 1)

        assert [t.node_id for t in store.list_trucks()] == [
            (tid + 19) % 3 + 1 for tid in truck_ids
        ]

    def test_unknown_truck(self, memory_store):
        with pytest.raises(NotFoundError):
            memory_store.set_truck_location(404, 1)
        assert memory_store.get_truck(404) is None


# ── TestOrderCopies ───────────────────────────────────────────


class TestOrderCopies:
    def test_mutating_a_read_does_not_change_the_store(self, memory_store):
        order_id = memory_store.insert_order(1, 4, 1.0)
        order = memory_store.get_order(order_id)
        order.status = "completed"
        assert memory_store.get_order(order_id).status == "pending"
