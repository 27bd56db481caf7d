"""Domain records for the dispatch engine.

Public API:
    OrderStatus: Statuses the lifecycle engine writes.
    TruckStatus: Statuses a tow truck moves between during dispatch.
    ALLOWED_TRANSITIONS: Order status transition table.
    Node, Edge: Service-area map primitives.
    TowTruck, Order, CompletedOrder: Dispatch entities.
    User, Dispatcher: Identity records used for enrichment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class OrderStatus(str, Enum):
    """Order statuses written by the lifecycle engine."""

    PENDING = "pending"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str) -> "OrderStatus | None":
        """Return the matching status, or None for a value the engine never writes."""
        try:
            return cls(value)
        except ValueError:
            return None


class TruckStatus(str, Enum):
    """Truck statuses used by dispatch."""

    AVAILABLE = "available"
    BUSY = "busy"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.DISPATCHED}),
    OrderStatus.DISPATCHED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Node:
    """A point of the service-area map.

    Attributes:
        id: Node identifier
        x: Planar x coordinate
        y: Planar y coordinate
        area_id: Area the node belongs to
    """

    id: int
    x: int
    y: int
    area_id: int | None = None


@dataclass(frozen=True)
class Edge:
    """An undirected road segment between two nodes.

    Attributes:
        node_a_id: One endpoint
        node_b_id: Other endpoint
        weight: Non-negative traversal cost
    """

    node_a_id: int
    node_b_id: int
    weight: int

    def reversed(self) -> "Edge":
        return Edge(node_a_id=self.node_b_id, node_b_id=self.node_a_id, weight=self.weight)


@dataclass
class TowTruck:
    """A tow truck with its current status and location.

    ``status`` and ``node_id`` are the only fields that change; the
    location reflects the most recent location record.
    """

    id: int
    driver_id: int
    status: str
    node_id: int
    area_id: int
    driver_username: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "driver_user_id": self.driver_id,
            "driver_username": self.driver_username,
            "status": self.status,
            "node_id": self.node_id,
            "area_id": self.area_id,
        }


@dataclass
class Order:
    """A roadside-assistance order.

    Attributes:
        id: Order identifier
        client_id: User who placed the order
        node_id: Where the car is
        car_value: Declared value of the car
        status: Stored status string (see OrderStatus)
        dispatcher_id: Dispatcher who assigned a truck, if any
        tow_truck_id: Assigned truck, if any
        order_time: When the order was created
        completed_time: When the order was completed, if ever
    """

    id: int
    client_id: int
    node_id: int
    car_value: float
    status: str = OrderStatus.PENDING.value
    dispatcher_id: int | None = None
    tow_truck_id: int | None = None
    order_time: datetime = field(default_factory=utcnow)
    completed_time: datetime | None = None


@dataclass(frozen=True)
class CompletedOrder:
    """Audit record of a dispatch event. Never mutated after creation."""

    id: int
    order_id: int
    tow_truck_id: int
    order_time: datetime | None
    completed_time: datetime
    car_value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "tow_truck_id": self.tow_truck_id,
            "order_time": _iso(self.order_time),
            "completed_time": _iso(self.completed_time),
            "car_value": self.car_value,
        }


@dataclass(frozen=True)
class User:
    id: int
    username: str
    role: str = ""


@dataclass(frozen=True)
class Dispatcher:
    id: int
    user_id: int
    area_id: int


__all__ = [
    "ALLOWED_TRANSITIONS",
    "CompletedOrder",
    "Dispatcher",
    "Edge",
    "Node",
    "Order",
    "OrderStatus",
    "TowTruck",
    "TruckStatus",
    "User",
    "utcnow",
]
