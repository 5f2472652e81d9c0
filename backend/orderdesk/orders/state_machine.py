"""Order status state machine -- pure transition logic with validation.

No I/O, no database, no versioning. Classifies from->to transitions as
regular or irregular and raises on irregular ones when asked to enforce.
"""

from __future__ import annotations

from typing import ClassVar

from orderdesk.errors import ErrorCode, InvalidStatusError, OrderDeskError
from orderdesk.orders.types import TERMINAL_STATUSES, OrderStatus


class InvalidTransitionError(OrderDeskError):
    """Raised when an irregular status transition is enforced."""

    code = ErrorCode.INVALID_STATUS

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition: {from_status.value} -> {to_status.value}"
        )


def parse_status(value: OrderStatus | str) -> OrderStatus:
    """Parse a wire status string into the closed enum.

    Raises:
        InvalidStatusError: If value is not one of the enumerated statuses.
    """
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusError(value) from None


class OrderStatusMachine:
    """Status transition table for the order lifecycle.

    Same-status updates (e.g. only changing the prep estimate) are regular.
    Terminal statuses have no regular outgoing transitions.
    """

    TRANSITIONS: ClassVar[dict[OrderStatus, frozenset[OrderStatus]]] = {
        OrderStatus.PENDING: frozenset(
            {
                OrderStatus.PREPARING,
                OrderStatus.COMPLETED,
                OrderStatus.CANCELLED,
            }
        ),
        OrderStatus.PREPARING: frozenset(
            {
                OrderStatus.COMPLETED,
                OrderStatus.CANCELLED,
            }
        ),
    }

    def __init__(self, status: OrderStatus) -> None:
        self._status = status

    @property
    def status(self) -> OrderStatus:
        """Current status."""
        return self._status

    @property
    def is_terminal(self) -> bool:
        """Whether the current status is terminal."""
        return self._status in TERMINAL_STATUSES

    @property
    def allows_cancellation(self) -> bool:
        """Owner cancellation is only possible from Pending."""
        return self._status == OrderStatus.PENDING

    def is_regular(self, to: OrderStatus) -> bool:
        """Whether from->to is in the transition table (or a no-op)."""
        if to == self._status:
            return True
        return to in self.TRANSITIONS.get(self._status, frozenset())

    def transition(self, to: OrderStatus, *, enforce: bool = True) -> bool:
        """Apply a status transition.

        Returns whether the transition was regular. Irregular transitions
        are applied only when ``enforce`` is False.

        Raises:
            InvalidTransitionError: If enforce is True and the transition
                is irregular.
        """
        regular = self.is_regular(to)
        if not regular and enforce:
            raise InvalidTransitionError(self._status, to)
        self._status = to
        return regular
