"""Order lifecycle package."""

from orderdesk.orders.lifecycle import OrderLifecycleManager
from orderdesk.orders.presentation import time_remaining, to_admin_view, to_client_view
from orderdesk.orders.state_machine import (
    InvalidTransitionError,
    OrderStatusMachine,
    parse_status,
)
from orderdesk.orders.store import OrderChanges, OrderEvent, OrderStore
from orderdesk.orders.types import (
    CANCELLATION_WINDOW,
    TERMINAL_STATUSES,
    AdminOrder,
    ClientOrder,
    LineItem,
    Order,
    OrderEventType,
    OrderStatus,
    compute_total,
)

__all__ = [
    "CANCELLATION_WINDOW",
    "TERMINAL_STATUSES",
    "AdminOrder",
    "ClientOrder",
    "InvalidTransitionError",
    "LineItem",
    "Order",
    "OrderChanges",
    "OrderEvent",
    "OrderEventType",
    "OrderLifecycleManager",
    "OrderStatus",
    "OrderStatusMachine",
    "OrderStore",
    "compute_total",
    "parse_status",
    "time_remaining",
    "to_admin_view",
    "to_client_view",
]
