"""DispatchService -- the engine's public operations.

Repositories are passed in explicitly; the service holds no global
state and every call completes before returning.

Example:
    >>> from tow_dispatch import DispatchService, create_backend
    >>> store = create_backend("sqlite", db_path="dispatch.db")
    >>> service = DispatchService.from_store(store)
    >>> truck = service.find_nearest_available_truck(order_id=1)
"""

from __future__ import annotations

import logging
from datetime import datetime

from .backends.protocol import (
    IdentityRepository,
    MapRepository,
    OrderRepository,
    SupportsTransactions,
    TowTruckRepository,
)
from .config import DispatchConfig
from .enrichment import EnrichedOrder, EnrichmentAssembler
from .exceptions import BadRequestError
from .lifecycle import OrderLifecycle
from .matcher import DispatchMatcher
from .models import CompletedOrder, Order, OrderStatus, TowTruck, utcnow

logger = logging.getLogger(__name__)


class DispatchService:
    """Matching, order lifecycle and presentation over injected repositories.

    Args:
        maps: Map repository.
        trucks: Tow truck repository.
        orders: Order repository.
        identity: User and dispatcher repository.
        config: Engine settings (defaults to ``DispatchConfig()``).
        transactions: Store whose ``transaction()`` covers both *orders*
            and *trucks*; enables all-or-nothing dispatch.
    """

    def __init__(
        self,
        maps: MapRepository,
        trucks: TowTruckRepository,
        orders: OrderRepository,
        identity: IdentityRepository,
        config: DispatchConfig | None = None,
        transactions: SupportsTransactions | None = None,
    ) -> None:
        self.config = config or DispatchConfig()
        self._maps = maps
        self._trucks = trucks
        self._orders = orders
        self.matcher = DispatchMatcher(
            maps, trucks, admissibility_cutoff=self.config.admissibility_cutoff
        )
        self.lifecycle = OrderLifecycle(
            orders, trucks, config=self.config, transactions=transactions
        )
        self.assembler = EnrichmentAssembler(identity, trucks, maps)

    @classmethod
    def from_store(
        cls,
        store,
        config: DispatchConfig | None = None,
        map_store: MapRepository | None = None,
    ) -> "DispatchService":
        """Wire a service from one store implementing every repository.

        Dispatch is atomic when *store* supports transactions.

        Args:
            store: Truck, order and identity repository (and map
                repository unless *map_store* is given).
            config: Engine settings.
            map_store: Separate map repository, e.g. ``KuzuMapBackend``.
        """
        transactions = store if isinstance(store, SupportsTransactions) else None
        return cls(
            maps=map_store if map_store is not None else store,
            trucks=store,
            orders=store,
            identity=store,
            config=config,
            transactions=transactions,
        )

    # ── matching ──────────────────────────────────────────────

    def find_nearest_available_truck(self, order_id: int) -> TowTruck | None:
        """Nearest available truck in the order's area, or None.

        Raises:
            NotFoundError: If the order or its node does not exist.
        """
        order = self._orders.get_order(order_id)
        area_id = self._maps.get_area_id_for_node(order.node_id)
        return self.matcher.find_nearest(order.node_id, area_id)

    # ── order lifecycle ───────────────────────────────────────

    def create_client_order(self, client_id: int, node_id: int, car_value: float) -> int:
        return self.lifecycle.create_order(client_id, node_id, car_value)

    def dispatch_order(
        self,
        order_id: int,
        dispatcher_id: int,
        tow_truck_id: int,
        order_time: datetime | None = None,
    ) -> None:
        self.lifecycle.dispatch(
            order_id, dispatcher_id, tow_truck_id, order_time or utcnow()
        )

    def update_order_status(self, order_id: int, status: str | OrderStatus) -> None:
        self.lifecycle.update_status(order_id, status)

    def get_order(self, order_id: int) -> Order:
        return self._orders.get_order(order_id)

    def list_completed_orders(self) -> list[CompletedOrder]:
        return self.lifecycle.get_completed_orders()

    # ── presentation ──────────────────────────────────────────

    def get_enriched_order(self, order_id: int) -> EnrichedOrder:
        return self.assembler.enrich(self._orders.get_order(order_id))

    def list_enriched_orders(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[EnrichedOrder]:
        return [
            self.assembler.enrich(order)
            for order in self._orders.list_orders(status=status, area_id=area_id)
        ]

    # ── trucks and map ────────────────────────────────────────

    def get_truck(self, truck_id: int) -> TowTruck | None:
        return self._trucks.get_truck(truck_id)

    def list_trucks(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[TowTruck]:
        return self._trucks.list_trucks(status=status, area_id=area_id)

    def update_truck_location(self, truck_id: int, node_id: int) -> None:
        self._trucks.set_truck_location(truck_id, node_id)
        logger.debug("Truck %s moved to node %s", truck_id, node_id)

    def update_edge(self, node_a_id: int, node_b_id: int, weight: int) -> None:
        """Change a road weight.

        Raises:
            BadRequestError: If *weight* is negative.
            NotFoundError: If the edge does not exist.
        """
        if weight < 0:
            raise BadRequestError("edge weight must be non-negative")
        self._maps.update_edge(node_a_id, node_b_id, weight)


__all__ = ["DispatchService"]
