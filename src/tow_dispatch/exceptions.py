"""Custom exceptions for tow-dispatch."""

from __future__ import annotations


class DispatchError(Exception):
    """Base exception for dispatch engine operations."""


class NotFoundError(DispatchError):
    """Raised when a referenced order, user, dispatcher or truck is absent."""


class BadRequestError(DispatchError):
    """Raised when a creation request is rejected by the store."""


class StorageFailureError(DispatchError):
    """Raised for data-access errors not otherwise classified."""


class ConflictError(DispatchError):
    """Raised when a truck is no longer available at claim time."""


class InvalidTransitionError(DispatchError, ValueError):
    """Raised in strict mode when an order status change is not allowed."""

    def __init__(self, order_id: int, current: str, target: str):
        super().__init__(
            f"order {order_id}: transition {current!r} -> {target!r} is not allowed"
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class PartialFailureError(DispatchError):
    """Raised when a multi-step dispatch committed some steps but not all.

    Attributes:
        order_id: Order being dispatched
        committed_steps: Names of steps that were written before the failure
        cause: The error raised by the failing step
    """

    def __init__(self, order_id: int, committed_steps: list[str], cause: Exception):
        steps = ", ".join(committed_steps) or "none"
        super().__init__(
            f"dispatch of order {order_id} partially failed "
            f"(committed: {steps}): {cause}"
        )
        self.order_id = order_id
        self.committed_steps = list(committed_steps)
        self.cause = cause
