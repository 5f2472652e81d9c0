"""Read-time projections of stored orders.

Pure functions of (order, now). Nothing here mutates or persists state.
"""

from __future__ import annotations

import math
from datetime import datetime

from orderdesk.orders.types import AdminOrder, ClientOrder, Order, OrderStatus


def time_remaining(order: Order, now: datetime) -> int:
    """Whole seconds left in the cancellation window, floored at 0.

    Zero whenever the stored flag already says the order is not cancellable.
    """
    if not order.cancellable or order.status != OrderStatus.PENDING:
        return 0
    remaining = (order.cancellation_deadline - now).total_seconds()
    return max(0, math.floor(remaining))


def to_client_view(order: Order, now: datetime) -> ClientOrder:
    """Project an order for its owner at instant ``now``.

    The stored ``cancellable`` flag can lag real time between window expiry
    and the next write, so it is recomputed here: a zero countdown always
    reports the order as not cancellable.
    """
    remaining = time_remaining(order, now)
    return ClientOrder(
        order_id=order.order_id,
        owner_id=order.owner_id,
        table_number=order.table_number,
        line_items=order.line_items,
        total=order.total,
        placed_at=order.placed_at,
        cancellation_deadline=order.cancellation_deadline,
        cancellable=order.cancellable and remaining > 0,
        status=order.status,
        estimated_prep_minutes=order.estimated_prep_minutes,
        time_remaining=remaining,
    )


def to_admin_view(order: Order) -> AdminOrder:
    """Stored shape minus the concurrency version."""
    return AdminOrder(
        order_id=order.order_id,
        owner_id=order.owner_id,
        table_number=order.table_number,
        line_items=order.line_items,
        total=order.total,
        placed_at=order.placed_at,
        cancellation_deadline=order.cancellation_deadline,
        cancellable=order.cancellable,
        status=order.status,
        estimated_prep_minutes=order.estimated_prep_minutes,
    )
