"""Joins orders with identity and area data for presentation."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from .backends.protocol import IdentityRepository, MapRepository, TowTruckRepository
from .exceptions import NotFoundError
from .models import Order, User


@dataclass(frozen=True)
class EnrichedOrder:
    """An order with resolved usernames and area."""

    id: int
    client_id: int
    client_username: str
    dispatcher_id: int | None
    dispatcher_user_id: int | None
    dispatcher_username: str | None
    tow_truck_id: int | None
    driver_user_id: int | None
    driver_username: str | None
    status: str
    node_id: int
    area_id: int
    car_value: float
    order_time: datetime
    completed_time: datetime | None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["order_time"] = self.order_time.isoformat()
        data["completed_time"] = (
            self.completed_time.isoformat() if self.completed_time is not None else None
        )
        return data


class EnrichmentAssembler:
    """Resolves the users behind an order's client, dispatcher and truck.

    A dispatcher or truck id that no longer resolves leaves its fields
    empty. A client, dispatcher user or driver user that cannot be found
    is a data-integrity violation and raises ``NotFoundError``.
    """

    def __init__(
        self,
        identity: IdentityRepository,
        trucks: TowTruckRepository,
        maps: MapRepository,
    ) -> None:
        self._identity = identity
        self._trucks = trucks
        self._maps = maps

    def _require_user(self, user_id: int, role: str) -> User:
        user = self._identity.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"{role} user {user_id} not found")
        return user

    def enrich(self, order: Order) -> EnrichedOrder:
        client = self._require_user(order.client_id, "client")

        dispatcher_user_id = dispatcher_username = None
        if order.dispatcher_id is not None:
            dispatcher = self._identity.get_dispatcher_by_id(order.dispatcher_id)
            if dispatcher is not None:
                dispatcher_user_id = dispatcher.user_id
                dispatcher_username = self._require_user(dispatcher.user_id, "dispatcher").username

        driver_user_id = driver_username = None
        if order.tow_truck_id is not None:
            truck = self._trucks.get_truck(order.tow_truck_id)
            if truck is not None:
                driver_user_id = truck.driver_id
                driver_username = self._require_user(truck.driver_id, "driver").username

        return EnrichedOrder(
            id=order.id,
            client_id=order.client_id,
            client_username=client.username,
            dispatcher_id=order.dispatcher_id,
            dispatcher_user_id=dispatcher_user_id,
            dispatcher_username=dispatcher_username,
            tow_truck_id=order.tow_truck_id,
            driver_user_id=driver_user_id,
            driver_username=driver_username,
            status=order.status,
            node_id=order.node_id,
            area_id=self._maps.get_area_id_for_node(order.node_id),
            car_value=order.car_value,
            order_time=order.order_time,
            completed_time=order.completed_time,
        )


__all__ = ["EnrichedOrder", "EnrichmentAssembler"]
