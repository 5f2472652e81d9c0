"""Order-related database models.

Tables: orders, order_line_item, order_event
"""

from __future__ import annotations

from sqlalchemy import (
    DDL,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderdesk.models.base import Base, DecimalText

_STATUS_CHECK = "status IN ('Pending', 'Preparing', 'Completed', 'Cancelled')"


class OrderModel(Base):
    """Mutable order lifecycle tracking.

    ``version`` is bumped on every write and guards compare-and-swap
    updates. ``total``, ``placed_at`` and ``cancellation_deadline`` are
    written once at placement.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    table_number: Mapped[str | None] = mapped_column(String, nullable=True)
    total: Mapped[DecimalText] = mapped_column(DecimalText, nullable=False)
    placed_at: Mapped[str] = mapped_column(String, nullable=False)
    cancellation_deadline: Mapped[str] = mapped_column(String, nullable=False)
    cancellable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="1"
    )
    status: Mapped[str] = mapped_column(
        String,
        CheckConstraint(_STATUS_CHECK, name="ck_orders_status"),
        nullable=False,
        server_default="Pending",
    )
    estimated_prep_minutes: Mapped[int] = mapped_column(
        Integer,
        CheckConstraint(
            "estimated_prep_minutes >= 0", name="ck_orders_prep_minutes"
        ),
        nullable=False,
        server_default="0",
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    updated_at: Mapped[str] = mapped_column(String, nullable=False)

    line_items: Mapped[list[OrderLineItemModel]] = relationship(
        back_populates="order",
        order_by="OrderLineItemModel.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_orders_owner_placed", "owner_id", "placed_at"),
        Index("ix_orders_placed_at", "placed_at"),
        Index("ix_orders_status", "status"),
    )


class OrderLineItemModel(Base):
    """Immutable line items captured at placement, in submission order."""

    __tablename__ = "order_line_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("orders.order_id"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, server_default="")
    unit_price: Mapped[DecimalText] = mapped_column(DecimalText, nullable=False)
    quantity: Mapped[int] = mapped_column(
        Integer,
        CheckConstraint("quantity >= 1", name="ck_order_line_item_quantity"),
        nullable=False,
    )

    order: Mapped[OrderModel] = relationship(back_populates="line_items")

    __table_args__ = (
        Index("ix_order_line_item_order", "order_id", "position"),
    )


class OrderEventModel(Base):
    """Immutable append-only audit log for order lifecycle writes."""

    __tablename__ = "order_event"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String, nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    old_status: Mapped[str | None] = mapped_column(String, nullable=True)
    new_status: Mapped[str] = mapped_column(String, nullable=False)
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        Index("ix_order_event_order_id", "order_id"),
        Index("ix_order_event_recorded", "recorded_at"),
    )


ORDER_EVENT_TRIGGERS = (
    "CREATE TRIGGER IF NOT EXISTS no_update_order_event "
    "BEFORE UPDATE ON order_event "
    "BEGIN SELECT RAISE(ABORT, 'order_event is immutable'); END;",
    "CREATE TRIGGER IF NOT EXISTS no_delete_order_event "
    "BEFORE DELETE ON order_event "
    "BEGIN SELECT RAISE(ABORT, 'order_event is immutable'); END;",
)

# metadata.create_all installs the triggers too; migrations call
# create_immutability_triggers() with the same statements
for _statement in ORDER_EVENT_TRIGGERS:
    event.listen(
        OrderEventModel.__table__,
        "after_create",
        DDL(_statement).execute_if(dialect="sqlite"),
    )
