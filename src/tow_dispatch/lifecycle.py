"""OrderLifecycle -- order state machine and the multi-entity dispatch protocol.

Status flow::

    pending --dispatch--> dispatched --(update_status)--> completed

``dispatch`` writes three independently stored entities in a fixed order:

1. ``record_lineage`` -- completed-order audit record ``(order, truck, time)``
2. ``assign_order``   -- dispatcher/truck linkage, status ``dispatched``
3. ``claim_truck``    -- truck status ``available`` -> ``busy``

When a transaction scope is supplied the three writes commit or roll back
together. Without one, a failure after step 1 leaves the earlier writes in
place and is reported as ``PartialFailureError``.

Public API:
    OrderLifecycle: The lifecycle engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from numbers import Real

from .backends.protocol import OrderRepository, SupportsTransactions, TowTruckRepository
from .config import DispatchConfig
from .exceptions import (
    BadRequestError,
    ConflictError,
    DispatchError,
    InvalidTransitionError,
    NotFoundError,
    PartialFailureError,
    StorageFailureError,
)
from .models import ALLOWED_TRANSITIONS, CompletedOrder, Order, OrderStatus, TruckStatus

logger = logging.getLogger(__name__)

STEP_RECORD_LINEAGE = "record_lineage"
STEP_ASSIGN_ORDER = "assign_order"
STEP_CLAIM_TRUCK = "claim_truck"


def _status_value(status: str | OrderStatus) -> str:
    return status.value if isinstance(status, OrderStatus) else status


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class OrderLifecycle:
    """Drives orders through creation, dispatch and status corrections.

    Args:
        orders: Order and completed-order store.
        trucks: Tow truck store.
        config: Engine settings; ``strict_transitions`` enables the
            transition table check.
        transactions: Store whose ``transaction()`` spans both *orders*
            and *trucks*. None means steps commit one by one.
    """

    def __init__(
        self,
        orders: OrderRepository,
        trucks: TowTruckRepository,
        config: DispatchConfig | None = None,
        transactions: SupportsTransactions | None = None,
    ) -> None:
        self._orders = orders
        self._trucks = trucks
        self.config = config or DispatchConfig()
        self._transactions = transactions

    @property
    def atomic_dispatch(self) -> bool:
        return self._transactions is not None

    # ── creation ──────────────────────────────────────────────

    def create_order(self, client_id: int, node_id: int, car_value: float) -> int:
        """Insert a new ``pending`` order and return its id.

        Raises:
            BadRequestError: If the inputs are malformed or the store
                rejects the insert.
        """
        if not _is_int(client_id) or not _is_int(node_id):
            raise BadRequestError("client_id and node_id must be integers")
        if not isinstance(car_value, Real) or isinstance(car_value, bool):
            raise BadRequestError("car_value must be a number")

        try:
            order_id = self._orders.insert_order(client_id, node_id, float(car_value))
        except DispatchError as e:
            raise BadRequestError(f"order could not be created: {e}") from e

        logger.debug("Created order %s for client %s at node %s", order_id, client_id, node_id)
        return order_id

    # ── dispatch ──────────────────────────────────────────────

    def dispatch(
        self,
        order_id: int,
        dispatcher_id: int,
        truck_id: int,
        order_time: datetime,
    ) -> None:
        """Assign *truck_id* to *order_id* on behalf of *dispatcher_id*.

        The order's current status is only checked in strict mode; by
        default an already dispatched order is dispatched again.

        Raises:
            BadRequestError: If the ids or *order_time* are malformed, or
                the lineage record cannot be written.
            NotFoundError: If the order or truck does not exist.
            InvalidTransitionError: Strict mode, order not ``pending``.
            ConflictError: Atomic mode, truck was no longer available.
            PartialFailureError: Non-atomic mode, a later step failed
                after earlier steps committed.
        """
        if not all(_is_int(v) for v in (order_id, dispatcher_id, truck_id)):
            raise BadRequestError("order_id, dispatcher_id and truck_id must be integers")
        if not isinstance(order_time, datetime):
            raise BadRequestError("order_time must be a datetime")

        order = self._orders.get_order(order_id)
        if self._trucks.get_truck(truck_id) is None:
            raise NotFoundError(f"tow truck {truck_id} not found")
        if self.config.strict_transitions:
            self._check_transition(order, OrderStatus.DISPATCHED)

        steps: list[tuple[str, Callable[[], object]]] = [
            (
                STEP_RECORD_LINEAGE,
                lambda: self._record_lineage(order_id, truck_id, order_time),
            ),
            (
                STEP_ASSIGN_ORDER,
                lambda: self._orders.set_order_dispatch(order_id, dispatcher_id, truck_id),
            ),
            (STEP_CLAIM_TRUCK, lambda: self._claim_truck(truck_id)),
        ]

        if self._transactions is not None:
            self._run_atomic(order_id, steps)
        else:
            self._run_stepwise(order_id, steps)

        logger.debug(
            "Dispatched order %s to truck %s (dispatcher %s)", order_id, truck_id, dispatcher_id
        )

    def _record_lineage(self, order_id: int, truck_id: int, order_time: datetime) -> None:
        try:
            self._orders.insert_completed_order(order_id, truck_id, order_time)
        except StorageFailureError as e:
            raise BadRequestError(f"dispatch record for order {order_id} rejected: {e}") from e

    def _claim_truck(self, truck_id: int) -> None:
        claimed = self._trucks.set_truck_status(
            truck_id,
            TruckStatus.BUSY.value,
            expected_status=TruckStatus.AVAILABLE.value,
        )
        if not claimed:
            raise ConflictError(f"tow truck {truck_id} is not available")

    def _run_atomic(self, order_id: int, steps: list[tuple[str, Callable[[], object]]]) -> None:
        try:
            with self._transactions.transaction():
                for _, step in steps:
                    step()
        except DispatchError as e:
            logger.warning("Dispatch of order %s rolled back: %s", order_id, e)
            raise

    def _run_stepwise(self, order_id: int, steps: list[tuple[str, Callable[[], object]]]) -> None:
        committed: list[str] = []
        for name, step in steps:
            try:
                step()
            except Exception as e:
                if not committed:
                    raise
                logger.warning(
                    "Dispatch of order %s failed at %s after committing %s: %s",
                    order_id,
                    name,
                    committed,
                    e,
                )
                raise PartialFailureError(order_id, committed, e) from e
            committed.append(name)

    # ── status corrections ────────────────────────────────────

    def update_status(self, order_id: int, new_status: str | OrderStatus) -> None:
        """Overwrite an order's status.

        Any string is written unless ``strict_transitions`` is set, in
        which case only transitions listed in ``ALLOWED_TRANSITIONS`` are
        accepted.

        Raises:
            InvalidTransitionError: Strict mode, disallowed transition.
        """
        value = _status_value(new_status)
        if self.config.strict_transitions:
            order = self._orders.get_order(order_id)
            self._check_transition(order, value)
        self._orders.set_order_status(order_id, value)
        logger.debug("Order %s status set to %r", order_id, value)

    def _check_transition(self, order: Order, target: str | OrderStatus) -> None:
        current = OrderStatus.parse(order.status)
        wanted = OrderStatus.parse(_status_value(target))
        if current is None or wanted is None or wanted not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(order.id, order.status, _status_value(target))

    # ── reporting ─────────────────────────────────────────────

    def get_completed_orders(self) -> list[CompletedOrder]:
        return self._orders.list_completed_orders()


__all__ = [
    "OrderLifecycle",
    "STEP_ASSIGN_ORDER",
    "STEP_CLAIM_TRUCK",
    "STEP_RECORD_LINEAGE",
]
