"""Tests for database models, DecimalText type, and SQLite pragmas."""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderdesk.models import (
    Base,
    OrderEventModel,
    OrderLineItemModel,
    OrderModel,
    UserModel,
)
from orderdesk.models.base import create_all, create_engine, set_sqlite_pragmas


@pytest.fixture()
def sync_engine() -> Engine:
    """In-memory SQLite engine with pragmas; create_all installs the triggers."""
    engine = sa.create_engine("sqlite:///:memory:")
    event.listen(engine, "connect", set_sqlite_pragmas)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def session(sync_engine: Engine) -> Iterator[Session]:
    with Session(sync_engine) as session:
        yield session


def _order(order_id: str = "o-1", **overrides: object) -> OrderModel:
    values: dict[str, object] = {
        "order_id": order_id,
        "owner_id": "user-1",
        "total": Decimal("12.50"),
        "placed_at": "2026-03-02T12:00:00.000000Z",
        "cancellation_deadline": "2026-03-02T12:01:00.000000Z",
        "updated_at": "2026-03-02T12:00:00.000000Z",
    }
    values.update(overrides)
    return OrderModel(**values)


class TestSQLitePragmas:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        """WAL mode only works with file-based SQLite, not :memory:."""
        engine = sa.create_engine(f"sqlite:///{tmp_path / 'wal.db'}")
        event.listen(engine, "connect", set_sqlite_pragmas)
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        engine.dispose()

    def test_busy_timeout_and_foreign_keys(self, sync_engine: Engine) -> None:
        with sync_engine.connect() as conn:
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 5000
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestSchema:
    def test_tables_exist(self, sync_engine: Engine) -> None:
        names = set(inspect(sync_engine).get_table_names())
        assert {"orders", "order_line_item", "order_event", "users"} <= names

    def test_order_indexes(self, sync_engine: Engine) -> None:
        indexes = {i["name"] for i in inspect(sync_engine).get_indexes("orders")}
        assert {"ix_orders_owner_placed", "ix_orders_placed_at", "ix_orders_status"} <= indexes


class TestOrderModel:
    def test_defaults(self, session: Session) -> None:
        session.add(_order())
        session.commit()
        row = session.execute(sa.select(OrderModel)).scalar_one()
        assert row.status == "Pending"
        assert row.cancellable is True
        assert row.version == 0
        assert row.estimated_prep_minutes == 0

    def test_decimal_text_roundtrip(self, session: Session) -> None:
        session.add(_order(total=Decimal("0.10")))
        session.commit()
        row = session.execute(sa.select(OrderModel)).scalar_one()
        assert row.total == Decimal("0.10")
        raw = session.execute(text("SELECT total FROM orders")).scalar()
        assert raw == "0.10"

    def test_status_check_constraint(self, session: Session) -> None:
        session.add(_order(status="Delivered"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_prep_minutes_check_constraint(self, session: Session) -> None:
        session.add(_order(estimated_prep_minutes=-1))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_order_id_unique(self, session: Session) -> None:
        session.add(_order())
        session.commit()
        session.add(_order())
        with pytest.raises(IntegrityError):
            session.commit()

    def test_line_items_ordered_by_position(self, session: Session) -> None:
        order = _order()
        order.line_items = [
            OrderLineItemModel(position=1, item_id="b", unit_price=Decimal("1"), quantity=1),
            OrderLineItemModel(position=0, item_id="a", unit_price=Decimal("2"), quantity=2),
        ]
        session.add(order)
        session.commit()
        session.expire_all()
        row = session.execute(sa.select(OrderModel)).scalar_one()
        assert [li.item_id for li in row.line_items] == ["a", "b"]

    def test_line_item_quantity_check(self, session: Session) -> None:
        order = _order()
        order.line_items = [
            OrderLineItemModel(position=0, item_id="a", unit_price=Decimal("1"), quantity=0)
        ]
        session.add(order)
        with pytest.raises(IntegrityError):
            session.commit()

    def test_line_item_requires_existing_order(self, session: Session) -> None:
        session.add(
            OrderLineItemModel(
                order_id="ghost", position=0, item_id="a", unit_price=Decimal("1"), quantity=1
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()


class TestOrderEventImmutability:
    def _event(self) -> OrderEventModel:
        return OrderEventModel(
            order_id="o-1",
            event_type="placed",
            new_status="Pending",
            actor_id="user-1",
            recorded_at="2026-03-02T12:00:00.000000Z",
        )

    def test_update_blocked(self, session: Session) -> None:
        session.add(self._event())
        session.commit()
        with pytest.raises(sa.exc.DatabaseError, match="immutable"):
            session.execute(text("UPDATE order_event SET new_status = 'Cancelled'"))

    def test_delete_blocked(self, session: Session) -> None:
        session.add(self._event())
        session.commit()
        with pytest.raises(sa.exc.DatabaseError, match="immutable"):
            session.execute(text("DELETE FROM order_event"))

    async def test_async_create_all_installs_triggers(self) -> None:
        engine = create_engine("sqlite+aiosqlite://")
        try:
            await create_all(engine)
            async with engine.connect() as conn:
                result = await conn.execute(
                    text("SELECT name FROM sqlite_master WHERE type='trigger'")
                )
                names = {row[0] for row in result}
        finally:
            await engine.dispose()
        assert names == {"no_update_order_event", "no_delete_order_event"}


class TestUserModel:
    def test_role_check_constraint(self, session: Session) -> None:
        session.add(
            UserModel(
                user_id="u-1",
                email="a@b.c",
                password_hash="x",
                role="owner",
                registered_at="2026-03-02T12:00:00.000000Z",
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()

    def test_email_unique(self, session: Session) -> None:
        for uid in ("u-1", "u-2"):
            session.add(
                UserModel(
                    user_id=uid,
                    email="a@b.c",
                    password_hash="x",
                    registered_at="2026-03-02T12:00:00.000000Z",
                )
            )
        with pytest.raises(IntegrityError):
            session.commit()
