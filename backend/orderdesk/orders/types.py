"""Order domain types shared across the order lifecycle.

Frozen dataclasses for value objects. All monetary values use Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

# Fixed at placement, never recomputed
CANCELLATION_WINDOW = timedelta(seconds=60)


class OrderStatus(str, Enum):
    """Order lifecycle statuses. Values are the wire strings."""

    PENDING = "Pending"
    PREPARING = "Preparing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }
)


class OrderEventType(str, Enum):
    """Audit event kinds written alongside each lifecycle write."""

    PLACED = "placed"
    CANCELLED = "cancelled"
    STATUS_UPDATED = "status_updated"


@dataclass(frozen=True)
class LineItem:
    """One line of an order, priced as quoted by the client."""

    item_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    """Stored order record."""

    order_id: str
    owner_id: str
    table_number: str | None
    line_items: tuple[LineItem, ...]
    total: Decimal
    placed_at: datetime
    cancellation_deadline: datetime
    cancellable: bool
    status: OrderStatus
    estimated_prep_minutes: int
    version: int


@dataclass(frozen=True)
class ClientOrder:
    """Client-facing projection of an Order at a given instant."""

    order_id: str
    owner_id: str
    table_number: str | None
    line_items: tuple[LineItem, ...]
    total: Decimal
    placed_at: datetime
    cancellation_deadline: datetime
    cancellable: bool
    status: OrderStatus
    estimated_prep_minutes: int
    time_remaining: int


@dataclass(frozen=True)
class AdminOrder:
    """Administrator view: stored shape without internals."""

    order_id: str
    owner_id: str
    table_number: str | None
    line_items: tuple[LineItem, ...]
    total: Decimal
    placed_at: datetime
    cancellation_deadline: datetime
    cancellable: bool
    status: OrderStatus
    estimated_prep_minutes: int


def compute_total(line_items: tuple[LineItem, ...] | list[LineItem]) -> Decimal:
    """Sum of unit_price * quantity over all line items."""
    return sum((item.subtotal for item in line_items), Decimal("0"))
