"""Order endpoints.

- POST /orders                  place an order (user)
- GET  /orders/user             caller's orders with live countdown (user)
- GET  /orders                  every order (admin)
- GET  /orders/{id}             one order, owner or admin
- POST /orders/{id}/cancel      owner cancellation inside the window
- PUT  /orders/{id}/status      status / prep time update (admin)

Domain errors propagate to the app-level handler, which maps their
ErrorCode to an HTTP status.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from orderdesk.api.dependencies import CurrentPrincipal, Lifecycle
from orderdesk.api.schemas import (
    AdminOrderOut,
    ClientOrderOut,
    ErrorResponse,
    MessageResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from orderdesk.orders.presentation import to_admin_view, to_client_view

router = APIRouter(prefix="/orders", tags=["Orders"])

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PlaceOrderResponse,
    responses=_ERRORS,
    summary="Place an order",
)
async def place_order(
    body: PlaceOrderRequest,
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> PlaceOrderResponse:
    order = await lifecycle.place_order(
        principal,
        [item.to_domain() for item in body.line_items],
        table_number=body.table_number,
        quoted_total=body.total,
    )
    return PlaceOrderResponse(order_id=order.order_id)


@router.get(
    "/user",
    response_model=list[ClientOrderOut],
    responses=_ERRORS,
    summary="List the caller's orders",
)
async def list_user_orders(
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> list[ClientOrderOut]:
    orders = await lifecycle.list_orders_for_user(principal)
    now = lifecycle.now()
    return [ClientOrderOut.from_client_view(to_client_view(o, now)) for o in orders]


@router.get(
    "",
    response_model=list[AdminOrderOut],
    responses=_ERRORS,
    summary="List all orders (admin)",
)
async def list_all_orders(
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> list[AdminOrderOut]:
    orders = await lifecycle.list_all_orders(principal)
    return [AdminOrderOut.from_view(to_admin_view(o)) for o in orders]


@router.get(
    "/{order_id}",
    response_model=ClientOrderOut,
    responses=_ERRORS,
    summary="Fetch one order",
)
async def get_order(
    order_id: str,
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> ClientOrderOut:
    order = await lifecycle.get_order(principal, order_id)
    return ClientOrderOut.from_client_view(to_client_view(order, lifecycle.now()))


@router.post(
    "/{order_id}/cancel",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Cancel an order inside its cancellation window",
)
async def cancel_order(
    order_id: str,
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> MessageResponse:
    await lifecycle.cancel_order(principal, order_id)
    return MessageResponse(message="Order cancelled successfully")


@router.put(
    "/{order_id}/status",
    response_model=StatusUpdateResponse,
    responses=_ERRORS,
    summary="Update order status and prep time (admin)",
)
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    principal: CurrentPrincipal,
    lifecycle: Lifecycle,
) -> StatusUpdateResponse:
    order = await lifecycle.update_status(
        principal,
        order_id,
        body.status,
        estimated_prep_minutes=body.estimated_prep_minutes,
    )
    return StatusUpdateResponse(order=AdminOrderOut.from_view(to_admin_view(order)))
