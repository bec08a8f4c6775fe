"""
Order engine errors.

Services raise these; the HTTP layer maps them to status codes.
"""

from typing import Optional


class OrderEngineError(Exception):
    """Base class for all order engine failures."""

    def __init__(self, message: str, order_id: Optional[str] = None):
        self.message = message
        self.order_id = order_id
        super().__init__(message)


class OrderValidationError(OrderEngineError):
    """Caller-supplied data violates a precondition (e.g. no items on a pending order)."""


class OrderNotFoundError(OrderEngineError):
    """The referenced order does not exist."""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


class InvalidOrderStateError(OrderEngineError):
    """The operation is not legal for the order's current status."""

    def __init__(self, message: str, order_id: Optional[str] = None, status: Optional[str] = None):
        self.status = status
        super().__init__(message, order_id=order_id)


class OrderStorageError(OrderEngineError):
    """The persistence layer failed; the transaction was rolled back."""
