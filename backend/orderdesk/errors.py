"""Error hierarchy.

All domain exceptions inherit from OrderDeskError and carry an ErrorCode,
which the API layer maps to an HTTP status. Domain-rule violations are
always raised as one of these, never as a bare exception.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable error codes returned to clients."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATUS = "INVALID_STATUS"
    WINDOW_CLOSED = "WINDOW_CLOSED"
    CONFLICT = "CONFLICT"
    PERSISTENCE = "PERSISTENCE"


class OrderDeskError(Exception):
    """Base exception for all orderdesk errors."""

    code: ErrorCode = ErrorCode.PERSISTENCE

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnauthenticatedError(OrderDeskError):
    """Missing, malformed, expired or otherwise invalid credential."""

    code = ErrorCode.UNAUTHENTICATED


class ForbiddenError(OrderDeskError):
    """Role or ownership does not permit the operation."""

    code = ErrorCode.FORBIDDEN


class NotFoundError(OrderDeskError):
    code = ErrorCode.NOT_FOUND


class InvalidInputError(OrderDeskError):
    code = ErrorCode.INVALID_INPUT


class StoreError(OrderDeskError):
    """Unexpected persistence failure. Never retried."""

    code = ErrorCode.PERSISTENCE


class ConcurrentUpdateError(OrderDeskError):
    """Compare-and-swap lost on every attempt."""

    code = ErrorCode.CONFLICT


# --- Order lifecycle errors ---


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__("Order not found")


class OrderForbiddenError(ForbiddenError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__("Forbidden: You can only cancel your own orders")


class InvalidOrderInputError(InvalidInputError):
    """Order placement or update payload violates a domain rule."""


class CancellationWindowClosedError(OrderDeskError):
    """Order is no longer cancellable."""

    code = ErrorCode.WINDOW_CLOSED

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(
            "Order cannot be cancelled. Cancellation window has closed "
            "or order is already processed."
        )


class InvalidStatusError(OrderDeskError):
    """Status value outside the enumerated set."""

    code = ErrorCode.INVALID_STATUS

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__("Invalid status provided")
