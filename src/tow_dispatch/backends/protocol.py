"""Repository protocols -- the data-access contracts the engine consumes.

Every storage adapter (in-memory, SQLite, Kuzu, ...) satisfies some or
all of these so the engine can swap backends without changes.

Public API:
    MapRepository: Area nodes, edges and node-to-area lookup.
    TowTruckRepository: Truck listing, status and location updates.
    OrderRepository: Orders and completed-order lineage records.
    IdentityRepository: Users and dispatchers.
    SupportsTransactions: Optional all-or-nothing write scope.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol, runtime_checkable

from ..models import CompletedOrder, Dispatcher, Edge, Node, Order, TowTruck, User


@runtime_checkable
class MapRepository(Protocol):
    """Service-area map access."""

    def get_nodes(self, area_id: int | None = None) -> list[Node]:
        """Return nodes ordered by id, restricted to *area_id* when given."""
        ...

    def get_edges(self, area_id: int | None = None) -> list[Edge]:
        """Return edges whose first endpoint lies in *area_id* when given."""
        ...

    def get_area_id_for_node(self, node_id: int) -> int:
        """Return the area of *node_id*.

        Raises:
            NotFoundError: If the node does not exist.
        """
        ...

    def update_edge(self, node_a_id: int, node_b_id: int, weight: int) -> None:
        """Change the weight of the stored edge (node_a_id, node_b_id)."""
        ...


@runtime_checkable
class TowTruckRepository(Protocol):
    """Tow truck access. Location is the most recent location record."""

    def get_available_trucks(self, area_id: int) -> list[TowTruck]:
        """Return trucks with status ``available`` in *area_id*, by id."""
        ...

    def list_trucks(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[TowTruck]:
        """Return trucks matching optional filters, ordered by id."""
        ...

    def get_truck(self, truck_id: int) -> TowTruck | None:
        """Fetch a truck by id, or None if not found."""
        ...

    def set_truck_status(
        self, truck_id: int, status: str, expected_status: str | None = None
    ) -> bool:
        """Overwrite a truck's status.

        When *expected_status* is given the write only happens if the
        current status equals it.

        Returns:
            True if a truck row was updated.
        """
        ...

    def set_truck_location(self, truck_id: int, node_id: int) -> None:
        """Append a location record for the truck."""
        ...


@runtime_checkable
class OrderRepository(Protocol):
    """Order and completed-order access."""

    def get_order(self, order_id: int) -> Order:
        """Fetch an order.

        Raises:
            NotFoundError: If the order does not exist.
        """
        ...

    def list_orders(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[Order]:
        """Return orders matching optional filters in storage order."""
        ...

    def insert_order(self, client_id: int, node_id: int, car_value: float) -> int:
        """Insert a ``pending`` order and return its id."""
        ...

    def set_order_status(self, order_id: int, status: str) -> None:
        """Overwrite an order's status."""
        ...

    def set_order_dispatch(self, order_id: int, dispatcher_id: int, truck_id: int) -> None:
        """Record dispatcher and truck on an order and mark it ``dispatched``."""
        ...

    def insert_completed_order(
        self, order_id: int, truck_id: int, order_time: datetime
    ) -> int:
        """Insert a completed-order lineage record and return its id."""
        ...

    def list_completed_orders(self) -> list[CompletedOrder]:
        """Return lineage records joined with the order's car value."""
        ...


@runtime_checkable
class IdentityRepository(Protocol):
    """User and dispatcher lookups."""

    def get_user_by_id(self, user_id: int) -> User | None:
        ...

    def get_dispatcher_by_id(self, dispatcher_id: int) -> Dispatcher | None:
        ...


@runtime_checkable
class SupportsTransactions(Protocol):
    """A store able to group several writes into one atomic unit."""

    def transaction(self) -> AbstractContextManager[None]:
        """Commit on normal exit; roll back everything if the block raises."""
        ...


__all__ = [
    "IdentityRepository",
    "MapRepository",
    "OrderRepository",
    "SupportsTransactions",
    "TowTruckRepository",
]
