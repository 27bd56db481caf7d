"""InMemoryBackend -- dict-based store implementing every repository protocol.

Used for tests and embedding without a database. Thread-safe via a
reentrant lock; every single call is atomic, but there is no
multi-call transaction support.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..exceptions import NotFoundError, StorageFailureError
from ..models import (
    CompletedOrder,
    Dispatcher,
    Edge,
    Node,
    Order,
    OrderStatus,
    TowTruck,
    TruckStatus,
    User,
    utcnow,
)


class InMemoryBackend:
    """Dict-backed map, truck, order and identity store.

    Args:
        store_id: Human-readable identifier for this store instance.
    """

    def __init__(self, store_id: str = "in_memory") -> None:
        self._store_id = store_id
        self._nodes: dict[int, Node] = {}
        self._edges: list[Edge] = []
        self._users: dict[int, User] = {}
        self._dispatchers: dict[int, Dispatcher] = {}
        self._trucks: dict[int, dict[str, Any]] = {}  # id -> {driver_id, status, area_id}
        self._locations: list[tuple[int, int, int]] = []  # (seq, truck_id, node_id)
        self._current_nodes: dict[int, int] = {}  # truck_id -> latest node_id
        self._orders: dict[int, Order] = {}
        self._completed: dict[int, dict[str, Any]] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("truck", "order", "completed", "location")
        }
        self._lock = threading.RLock()

    @property
    def store_id(self) -> str:
        return self._store_id

    # ── seeding ───────────────────────────────────────────────

    def add_node(self, node: Node) -> Node:
        with self._lock:
            self._nodes[node.id] = node
        return node

    def add_edge(self, edge: Edge) -> Edge:
        with self._lock:
            self._edges.append(edge)
        return edge

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
        return user

    def add_dispatcher(self, dispatcher: Dispatcher) -> Dispatcher:
        with self._lock:
            self._dispatchers[dispatcher.id] = dispatcher
        return dispatcher

    def add_truck(
        self,
        driver_id: int,
        area_id: int,
        node_id: int,
        status: str = TruckStatus.AVAILABLE.value,
        truck_id: int | None = None,
    ) -> int:
        """Register a truck with an initial location and return its id."""
        with self._lock:
            tid = truck_id if truck_id is not None else next(self._ids["truck"])
            self._trucks[tid] = {"driver_id": driver_id, "status": status, "area_id": area_id}
            self._record_location(tid, node_id)
        return tid

    # ── map ───────────────────────────────────────────────────

    def get_nodes(self, area_id: int | None = None) -> list[Node]:
        with self._lock:
            nodes = [
                n for n in self._nodes.values() if area_id is None or n.area_id == area_id
            ]
        return sorted(nodes, key=lambda n: n.id)

    def get_edges(self, area_id: int | None = None) -> list[Edge]:
        with self._lock:
            if area_id is None:
                return list(self._edges)
            return [
                e
                for e in self._edges
                if e.node_a_id in self._nodes and self._nodes[e.node_a_id].area_id == area_id
            ]

    def get_area_id_for_node(self, node_id: int) -> int:
        with self._lock:
            node = self._nodes.get(node_id)
        if node is None or node.area_id is None:
            raise NotFoundError(f"node {node_id} not found")
        return node.area_id

    def update_edge(self, node_a_id: int, node_b_id: int, weight: int) -> None:
        key = (node_a_id, node_b_id)
        with self._lock:
            if not any((e.node_a_id, e.node_b_id) == key for e in self._edges):
                raise NotFoundError(f"edge {key} not found")
            self._edges = [
                Edge(e.node_a_id, e.node_b_id, weight)
                if (e.node_a_id, e.node_b_id) == key
                else e
                for e in self._edges
            ]

    # ── tow trucks ────────────────────────────────────────────

    def _record_location(self, truck_id: int, node_id: int) -> None:
        self._locations.append((next(self._ids["location"]), truck_id, node_id))
        self._current_nodes[truck_id] = node_id

    def _build_truck(self, truck_id: int) -> TowTruck | None:
        entry = self._trucks.get(truck_id)
        node_id = self._current_nodes.get(truck_id)
        if entry is None or node_id is None:
            return None
        driver = self._users.get(entry["driver_id"])
        return TowTruck(
            id=truck_id,
            driver_id=entry["driver_id"],
            status=entry["status"],
            node_id=node_id,
            area_id=entry["area_id"],
            driver_username=driver.username if driver else None,
        )

    def list_trucks(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[TowTruck]:
        results: list[TowTruck] = []
        with self._lock:
            for tid in sorted(self._trucks):
                truck = self._build_truck(tid)
                if truck is None:
                    continue
                if status is not None and truck.status != status:
                    continue
                if area_id is not None and truck.area_id != area_id:
                    continue
                results.append(truck)
        return results

    def get_available_trucks(self, area_id: int) -> list[TowTruck]:
        return self.list_trucks(status=TruckStatus.AVAILABLE.value, area_id=area_id)

    def get_truck(self, truck_id: int) -> TowTruck | None:
        with self._lock:
            return self._build_truck(truck_id)

    def set_truck_status(
        self, truck_id: int, status: str, expected_status: str | None = None
    ) -> bool:
        with self._lock:
            entry = self._trucks.get(truck_id)
            if entry is None:
                return False
            if expected_status is not None and entry["status"] != expected_status:
                return False
            entry["status"] = status
        return True

    def set_truck_location(self, truck_id: int, node_id: int) -> None:
        with self._lock:
            if truck_id not in self._trucks:
                raise NotFoundError(f"tow truck {truck_id} not found")
            self._record_location(truck_id, node_id)

    # ── orders ────────────────────────────────────────────────

    def _require_order(self, order_id: int) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found")
        return order

    def get_order(self, order_id: int) -> Order:
        with self._lock:
            return replace(self._require_order(order_id))

    def list_orders(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[Order]:
        with self._lock:
            orders = [replace(o) for o in self._orders.values()]
            if status is not None:
                orders = [o for o in orders if o.status == status]
            if area_id is not None:
                orders = [
                    o
                    for o in orders
                    if o.node_id in self._nodes and self._nodes[o.node_id].area_id == area_id
                ]
        return orders

    def insert_order(self, client_id: int, node_id: int, car_value: float) -> int:
        with self._lock:
            if node_id not in self._nodes:
                raise StorageFailureError(f"node {node_id} does not exist")
            order_id = next(self._ids["order"])
            self._orders[order_id] = Order(
                id=order_id,
                client_id=client_id,
                node_id=node_id,
                car_value=car_value,
                status=OrderStatus.PENDING.value,
            )
        return order_id

    def set_order_status(self, order_id: int, status: str) -> None:
        with self._lock:
            self._require_order(order_id).status = status

    def set_order_dispatch(self, order_id: int, dispatcher_id: int, truck_id: int) -> None:
        with self._lock:
            order = self._require_order(order_id)
            order.dispatcher_id = dispatcher_id
            order.tow_truck_id = truck_id
            order.status = OrderStatus.DISPATCHED.value

    def insert_completed_order(
        self, order_id: int, truck_id: int, order_time: datetime
    ) -> int:
        with self._lock:
            if order_id not in self._orders:
                raise StorageFailureError(f"order {order_id} does not exist")
            record_id = next(self._ids["completed"])
            self._completed[record_id] = {
                "order_id": order_id,
                "tow_truck_id": truck_id,
                "order_time": order_time,
                "completed_time": utcnow(),
            }
        return record_id

    def list_completed_orders(self) -> list[CompletedOrder]:
        with self._lock:
            return [
                CompletedOrder(
                    id=record_id,
                    order_id=rec["order_id"],
                    tow_truck_id=rec["tow_truck_id"],
                    order_time=rec["order_time"],
                    completed_time=rec["completed_time"],
                    car_value=self._orders[rec["order_id"]].car_value,
                )
                for record_id, rec in self._completed.items()
            ]

    # ── identity ──────────────────────────────────────────────

    def get_user_by_id(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_dispatcher_by_id(self, dispatcher_id: int) -> Dispatcher | None:
        with self._lock:
            return self._dispatchers.get(dispatcher_id)

    # ── lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Nothing to release."""


__all__ = ["InMemoryBackend"]
