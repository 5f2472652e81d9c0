"""Pydantic request/response schemas.

Wire format is camelCase. Line items accept both the current
``itemId``/``unitPrice`` keys and the older ``id``/``price`` keys.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from orderdesk.auth.users import User
from orderdesk.orders.types import AdminOrder, ClientOrder, LineItem
from orderdesk.utils.time import format_timestamp

# Money travels as a JSON number, Decimal internally
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]
Timestamp = Annotated[
    datetime,
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class LineItemIn(CamelModel):
    """Single line in an order submission."""

    item_id: str = Field(validation_alias=AliasChoices("itemId", "id", "item_id"))
    name: str = ""
    unit_price: Decimal = Field(
        validation_alias=AliasChoices("unitPrice", "price", "unit_price")
    )
    quantity: int = Field(validation_alias=AliasChoices("quantity", "qty"))

    def to_domain(self) -> LineItem:
        return LineItem(
            item_id=self.item_id,
            name=self.name,
            unit_price=self.unit_price,
            quantity=self.quantity,
        )


class PlaceOrderRequest(CamelModel):
    line_items: list[LineItemIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("lineItems", "items", "line_items"),
    )
    total: Decimal | None = None
    table_number: str | None = None


class StatusUpdateRequest(CamelModel):
    # Kept as a plain string so unknown values surface as INVALID_STATUS
    status: Any = None
    estimated_prep_minutes: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "estimatedPrepMinutes", "estimatedPrepTime", "estimated_prep_minutes"
        ),
    )


class CredentialsRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class LineItemOut(CamelModel):
    item_id: str
    name: str
    unit_price: Money
    quantity: int

    @classmethod
    def from_domain(cls, item: LineItem) -> LineItemOut:
        return cls(
            item_id=item.item_id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=item.quantity,
        )


class AdminOrderOut(CamelModel):
    id: str
    owner_id: str
    table_number: str | None
    line_items: list[LineItemOut]
    total: Money
    placed_at: Timestamp
    cancellation_deadline: Timestamp
    cancellable: bool
    status: str
    estimated_prep_minutes: int

    @classmethod
    def from_view(cls, view: AdminOrder) -> AdminOrderOut:
        return cls(
            id=view.order_id,
            owner_id=view.owner_id,
            table_number=view.table_number,
            line_items=[LineItemOut.from_domain(li) for li in view.line_items],
            total=view.total,
            placed_at=view.placed_at,
            cancellation_deadline=view.cancellation_deadline,
            cancellable=view.cancellable,
            status=view.status.value,
            estimated_prep_minutes=view.estimated_prep_minutes,
        )


class ClientOrderOut(AdminOrderOut):
    time_remaining: int

    @classmethod
    def from_client_view(cls, view: ClientOrder) -> ClientOrderOut:
        return cls(
            id=view.order_id,
            owner_id=view.owner_id,
            table_number=view.table_number,
            line_items=[LineItemOut.from_domain(li) for li in view.line_items],
            total=view.total,
            placed_at=view.placed_at,
            cancellation_deadline=view.cancellation_deadline,
            cancellable=view.cancellable,
            status=view.status.value,
            estimated_prep_minutes=view.estimated_prep_minutes,
            time_remaining=view.time_remaining,
        )


class PlaceOrderResponse(CamelModel):
    message: str = "Order placed successfully"
    order_id: str


class MessageResponse(CamelModel):
    message: str


class StatusUpdateResponse(CamelModel):
    message: str = "Order status updated successfully"
    order: AdminOrderOut


class TokenResponse(CamelModel):
    token: str


class ProfileResponse(CamelModel):
    id: str
    email: str
    role: str
    registered_at: Timestamp

    @classmethod
    def from_user(cls, user: User) -> ProfileResponse:
        return cls(
            id=user.user_id,
            email=user.email,
            role=user.role.value,
            registered_at=user.registered_at,
        )


class ErrorResponse(CamelModel):
    message: str
    code: str


class HealthResponse(CamelModel):
    status: str
    database: str
    timestamp: Timestamp
