"""Order store -- persistence of order records over async SQLAlchemy.

Single-order writes after placement go through compare_and_swap(), which
only applies when the stored version still matches the version the caller
read. Callers re-read and retry on a lost swap.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderdesk.errors import StoreError
from orderdesk.models.order import OrderEventModel, OrderLineItemModel, OrderModel
from orderdesk.orders.types import LineItem, Order, OrderEventType, OrderStatus
from orderdesk.utils.time import format_timestamp, parse_timestamp

log = structlog.get_logger()


@dataclass(frozen=True)
class OrderChanges:
    """Mutable fields written by a compare-and-swap update."""

    status: OrderStatus
    cancellable: bool
    estimated_prep_minutes: int


@dataclass(frozen=True)
class OrderEvent:
    """Audit entry recorded in the same transaction as a write."""

    event_type: OrderEventType
    old_status: OrderStatus | None
    new_status: OrderStatus
    actor_id: str
    detail: str | None = None


def _to_domain(model: OrderModel) -> Order:
    return Order(
        order_id=model.order_id,
        owner_id=model.owner_id,
        table_number=model.table_number,
        line_items=tuple(
            LineItem(
                item_id=li.item_id,
                name=li.name,
                unit_price=li.unit_price,  # type: ignore[arg-type]
                quantity=li.quantity,
            )
            for li in model.line_items
        ),
        total=model.total,  # type: ignore[arg-type]
        placed_at=parse_timestamp(model.placed_at),
        cancellation_deadline=parse_timestamp(model.cancellation_deadline),
        cancellable=bool(model.cancellable),
        status=OrderStatus(model.status),
        estimated_prep_minutes=model.estimated_prep_minutes,
        version=model.version,
    )


def _event_model(order_id: str, event: OrderEvent, at: datetime) -> OrderEventModel:
    return OrderEventModel(
        order_id=order_id,
        event_type=event.event_type.value,
        old_status=event.old_status.value if event.old_status else None,
        new_status=event.new_status.value,
        actor_id=event.actor_id,
        detail=event.detail,
        recorded_at=format_timestamp(at),
    )


class OrderStore:
    """Async persistence for orders, line items and their audit trail."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, order: Order, event: OrderEvent) -> None:
        """Persist a new order with its line items and placement event."""
        with self._translate_errors("insert", order.order_id):
            async with self._session_factory() as session, session.begin():
                model = OrderModel(
                    order_id=order.order_id,
                    owner_id=order.owner_id,
                    table_number=order.table_number,
                    total=order.total,
                    placed_at=format_timestamp(order.placed_at),
                    cancellation_deadline=format_timestamp(
                        order.cancellation_deadline
                    ),
                    cancellable=order.cancellable,
                    status=order.status.value,
                    estimated_prep_minutes=order.estimated_prep_minutes,
                    version=order.version,
                    updated_at=format_timestamp(order.placed_at),
                )
                model.line_items = [
                    OrderLineItemModel(
                        position=position,
                        item_id=item.item_id,
                        name=item.name,
                        unit_price=item.unit_price,
                        quantity=item.quantity,
                    )
                    for position, item in enumerate(order.line_items)
                ]
                session.add(model)
                session.add(_event_model(order.order_id, event, order.placed_at))

    async def get(self, order_id: str) -> Order | None:
        """Find an order by its public id."""
        with self._translate_errors("get", order_id):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(OrderModel).where(OrderModel.order_id == order_id)
                )
                model = result.scalar_one_or_none()
                return _to_domain(model) if model is not None else None

    async def list_for_owner(self, owner_id: str) -> list[Order]:
        """Orders placed by ``owner_id``, newest first."""
        with self._translate_errors("list_for_owner", owner_id):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(OrderModel)
                    .where(OrderModel.owner_id == owner_id)
                    .order_by(OrderModel.placed_at.desc(), OrderModel.id.desc())
                )
                return [_to_domain(m) for m in result.scalars().all()]

    async def list_all(self) -> list[Order]:
        """Every order, newest first."""
        with self._translate_errors("list_all", None):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(OrderModel).order_by(
                        OrderModel.placed_at.desc(), OrderModel.id.desc()
                    )
                )
                return [_to_domain(m) for m in result.scalars().all()]

    async def compare_and_swap(
        self,
        order_id: str,
        expected_version: int,
        changes: OrderChanges,
        event: OrderEvent,
        at: datetime,
    ) -> bool:
        """Apply ``changes`` iff the stored version equals ``expected_version``.

        The update bumps the version and appends the audit event in one
        transaction. Returns False when another writer got there first.
        """
        with self._translate_errors("compare_and_swap", order_id):
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(OrderModel)
                    .where(
                        OrderModel.order_id == order_id,
                        OrderModel.version == expected_version,
                    )
                    .values(
                        status=changes.status.value,
                        cancellable=changes.cancellable,
                        estimated_prep_minutes=changes.estimated_prep_minutes,
                        version=expected_version + 1,
                        updated_at=format_timestamp(at),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:  # type: ignore[attr-defined]
                    return False
                session.add(_event_model(order_id, event, at))
                return True

    async def events_for(self, order_id: str) -> list[OrderEventModel]:
        """Audit trail for one order, oldest first."""
        with self._translate_errors("events_for", order_id):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(OrderEventModel)
                    .where(OrderEventModel.order_id == order_id)
                    .order_by(OrderEventModel.id)
                )
                return list(result.scalars().all())

    @contextmanager
    def _translate_errors(self, operation: str, key: str | None) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            log.exception("store_error", operation=operation, key=key)
            raise StoreError("Failed to access order storage") from exc
