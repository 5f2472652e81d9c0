"""Order lifecycle manager -- owns every order state transition.

Placement, owner cancellation within the 60 second window, administrator
status/prep-time updates and listings. Each operation runs the capability
gate first. Writes after placement are compare-and-swap on the order
version, re-read and re-evaluated on conflict. All lifecycle events logged
via structlog.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import structlog

from orderdesk.auth.identity import Capability, Principal, authorize
from orderdesk.config import OrdersConfig
from orderdesk.errors import (
    CancellationWindowClosedError,
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidOrderInputError,
    OrderForbiddenError,
    OrderNotFoundError,
)
from orderdesk.orders.state_machine import OrderStatusMachine, parse_status
from orderdesk.orders.store import OrderChanges, OrderEvent, OrderStore
from orderdesk.orders.types import (
    CANCELLATION_WINDOW,
    LineItem,
    Order,
    OrderEventType,
    OrderStatus,
    compute_total,
)
from orderdesk.utils.time import Clock, utc_now

log = structlog.get_logger()

# Decides the write for a freshly read order, or raises a domain error
_Decision = Callable[[Order, datetime], tuple[OrderChanges, OrderEvent]]


def _validate_line_items(line_items: Sequence[LineItem]) -> tuple[LineItem, ...]:
    if not line_items:
        raise InvalidOrderInputError("Missing order details (items or total)")
    for item in line_items:
        if not item.item_id:
            raise InvalidOrderInputError("Every line item needs an item id")
        if isinstance(item.quantity, bool) or item.quantity < 1:
            raise InvalidOrderInputError(
                f"Quantity for item {item.item_id} must be at least 1"
            )
        if not item.unit_price.is_finite() or item.unit_price < 0:
            raise InvalidOrderInputError(
                f"Unit price for item {item.item_id} must be a non-negative amount"
            )
    return tuple(line_items)


def _validate_prep_minutes(minutes: int | None) -> None:
    if minutes is None:
        return
    if isinstance(minutes, bool) or minutes < 0:
        raise InvalidOrderInputError(
            "Estimated preparation time must be a non-negative number of minutes"
        )


class OrderLifecycleManager:
    """Async lifecycle manager for orders.

    The clock is injectable so window behavior can be exercised without
    sleeping.
    """

    def __init__(
        self,
        store: OrderStore,
        config: OrdersConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._config = config or OrdersConfig()
        self._clock = clock

    def now(self) -> datetime:
        """Current instant as seen by this manager."""
        return self._clock()

    async def place_order(
        self,
        principal: Principal,
        line_items: Sequence[LineItem],
        table_number: str | None = None,
        quoted_total: Decimal | None = None,
    ) -> Order:
        """Create a Pending order owned by the caller.

        The total is computed from the submitted unit prices and frozen.
        A differing client-quoted total is logged and ignored.
        """
        authorize(principal, Capability.PLACE_ORDER)
        items = _validate_line_items(line_items)
        total = compute_total(items)
        if quoted_total is not None and quoted_total != total:
            log.warning(
                "client_total_mismatch",
                user_id=principal.user_id,
                quoted_total=str(quoted_total),
                computed_total=str(total),
            )

        placed_at = self._clock()
        order = Order(
            order_id=str(uuid4()),
            owner_id=principal.user_id,
            table_number=(table_number or "").strip() or None,
            line_items=items,
            total=total,
            placed_at=placed_at,
            cancellation_deadline=placed_at + CANCELLATION_WINDOW,
            cancellable=True,
            status=OrderStatus.PENDING,
            estimated_prep_minutes=0,
            version=0,
        )
        await self._store.insert(
            order,
            OrderEvent(
                event_type=OrderEventType.PLACED,
                old_status=None,
                new_status=OrderStatus.PENDING,
                actor_id=principal.user_id,
            ),
        )

        log.info(
            "order_placed",
            order_id=order.order_id,
            user_id=principal.user_id,
            items=len(items),
            total=str(total),
            table_number=order.table_number,
        )
        return order

    async def cancel_order(self, principal: Principal, order_id: str) -> Order:
        """Owner cancellation inside the window.

        Raises:
            OrderNotFoundError: No such order.
            OrderForbiddenError: Caller is not the owner.
            CancellationWindowClosedError: Not Pending, flag already cleared,
                or the deadline has passed.
        """
        authorize(principal, Capability.CANCEL_OWN_ORDER)

        def decide(order: Order, now: datetime) -> tuple[OrderChanges, OrderEvent]:
            if order.owner_id != principal.user_id:
                log.info(
                    "order_cancel_rejected",
                    order_id=order_id,
                    user_id=principal.user_id,
                    reason="not_owner",
                )
                raise OrderForbiddenError(order_id)
            if not self.is_cancellation_open(order, now):
                log.info(
                    "order_cancel_rejected",
                    order_id=order_id,
                    user_id=principal.user_id,
                    reason="window_closed",
                    status=order.status.value,
                )
                raise CancellationWindowClosedError(order_id)
            return (
                OrderChanges(
                    status=OrderStatus.CANCELLED,
                    cancellable=False,
                    estimated_prep_minutes=order.estimated_prep_minutes,
                ),
                OrderEvent(
                    event_type=OrderEventType.CANCELLED,
                    old_status=order.status,
                    new_status=OrderStatus.CANCELLED,
                    actor_id=principal.user_id,
                ),
            )

        updated = await self._mutate(order_id, decide)
        log.info("order_cancelled", order_id=order_id, user_id=principal.user_id)
        return updated

    async def update_status(
        self,
        principal: Principal,
        order_id: str,
        new_status: OrderStatus | str,
        estimated_prep_minutes: int | None = None,
    ) -> Order:
        """Administrator status and prep-time update.

        Leaving Pending always clears ``cancellable`` for good. Transitions
        outside the status table are applied and logged unless
        ``orders.enforce_transitions`` is set.

        Raises:
            InvalidStatusError: Status not in the enumerated set.
            InvalidOrderInputError: Negative prep minutes.
            InvalidTransitionError: Irregular transition while enforcing.
            OrderNotFoundError: No such order.
        """
        authorize(principal, Capability.UPDATE_ORDER_STATUS)
        status = parse_status(new_status)
        _validate_prep_minutes(estimated_prep_minutes)
        enforce = self._config.enforce_transitions

        def decide(order: Order, now: datetime) -> tuple[OrderChanges, OrderEvent]:
            machine = OrderStatusMachine(order.status)
            reopens = machine.is_terminal
            regular = machine.transition(status, enforce=enforce)
            if not regular:
                log.warning(
                    "irregular_status_transition",
                    order_id=order_id,
                    from_status=order.status.value,
                    to_status=status.value,
                    reopens_terminal=reopens,
                    admin_id=principal.user_id,
                )
            prep = (
                estimated_prep_minutes
                if estimated_prep_minutes is not None
                else order.estimated_prep_minutes
            )
            return (
                OrderChanges(
                    status=status,
                    cancellable=order.cancellable and status == OrderStatus.PENDING,
                    estimated_prep_minutes=prep,
                ),
                OrderEvent(
                    event_type=OrderEventType.STATUS_UPDATED,
                    old_status=order.status,
                    new_status=status,
                    actor_id=principal.user_id,
                    detail=f"estimated_prep_minutes={prep}"
                    + ("" if regular else " irregular=true"),
                ),
            )

        updated = await self._mutate(order_id, decide)
        log.info(
            "order_status_updated",
            order_id=order_id,
            admin_id=principal.user_id,
            status=updated.status.value,
            estimated_prep_minutes=updated.estimated_prep_minutes,
        )
        return updated

    async def list_orders_for_user(self, principal: Principal) -> list[Order]:
        """The caller's orders, newest first."""
        authorize(principal, Capability.LIST_OWN_ORDERS)
        return await self._store.list_for_owner(principal.user_id)

    async def list_all_orders(self, principal: Principal) -> list[Order]:
        """Every order, newest first. Administrators only."""
        authorize(principal, Capability.LIST_ALL_ORDERS)
        return await self._store.list_all()

    async def get_order(self, principal: Principal, order_id: str) -> Order:
        """One order, visible to its owner and to administrators."""
        authorize(principal, Capability.LIST_OWN_ORDERS)
        order = await self._store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.owner_id != principal.user_id and not principal.can(
            Capability.LIST_ALL_ORDERS
        ):
            raise ForbiddenError("Forbidden: You can only view your own orders")
        return order

    @staticmethod
    def is_cancellation_open(order: Order, now: datetime) -> bool:
        """Whether the owner may cancel ``order`` at ``now``."""
        return (
            order.cancellable
            and OrderStatusMachine(order.status).allows_cancellation
            and now <= order.cancellation_deadline
        )

    # --- Internal helpers ---

    async def _mutate(self, order_id: str, decide: _Decision) -> Order:
        """Read, decide, compare-and-swap; re-read on a lost swap."""
        attempts = self._config.max_update_attempts
        for attempt in range(1, attempts + 1):
            order = await self._store.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)

            now = self._clock()
            changes, event = decide(order, now)
            swapped = await self._store.compare_and_swap(
                order_id,
                order.version,
                changes,
                event,
                now,
            )
            if swapped:
                return replace(
                    order,
                    status=changes.status,
                    cancellable=changes.cancellable,
                    estimated_prep_minutes=changes.estimated_prep_minutes,
                    version=order.version + 1,
                )

            log.warning(
                "order_update_conflict",
                order_id=order_id,
                attempt=attempt,
                expected_version=order.version,
            )

        raise ConcurrentUpdateError(
            "Order was modified concurrently, please retry"
        )
