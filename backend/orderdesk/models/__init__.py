"""Database models package."""

from orderdesk.models.base import Base, DecimalText
from orderdesk.models.order import (
    OrderEventModel,
    OrderLineItemModel,
    OrderModel,
)
from orderdesk.models.user import UserModel

__all__ = [
    "Base",
    "DecimalText",
    "OrderEventModel",
    "OrderLineItemModel",
    "OrderModel",
    "UserModel",
]
