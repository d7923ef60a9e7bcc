"""FastAPI routes for the Ordering domain — placement, forwarding and order status."""

import json

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AdminOrderResponse,
    CancelItemsRequest,
    CancellationResponse,
    ChangeStatusRequest,
    CustomerCancelRequest,
    CustomerOrderResponse,
    DisplayStatusResponse,
    ItemCancellationResponse,
    OrderIdResponse,
    PlaceOrderRequest,
    SplitResponse,
    StatusChangeResponse,
)
from ordering.order.cancellation import CancelOrderByCustomer
from ordering.order.creation import PlaceOrder
from ordering.order.errors import NotOrderOwner, OrderNotFound, TransitionRejected
from ordering.order.item_cancellation import CancelOrderItems
from ordering.order.service import build_order_status_service
from ordering.order.splitting import SplitOrder
from ordering.order.status_change import ChangePartStatus

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _not_found(exc: OrderNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Order '{exc.identifier}' not found")


def _rejected(exc: TransitionRejected) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "reason": exc.reason,
            "current_status": exc.current_status,
            "allowed_transitions": exc.allowed_transitions,
        },
    )


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_email=body.customer_email,
        items=json.dumps([item.model_dump() for item in body.items]),
        order_number=body.order_number,
        customer_name=body.customer_name,
        phone=body.phone,
        address=body.address,
        city=body.city,
        payment_method=body.payment_method,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.post("/{order_id}/split", response_model=SplitResponse)
async def split_order(order_id: str) -> SplitResponse:
    try:
        result = current_domain.process(SplitOrder(order_id=order_id), asynchronous=False)
    except OrderNotFound as exc:
        raise _not_found(exc) from exc
    return SplitResponse(**result)


@order_router.put("/parts/{part_id}/status", response_model=StatusChangeResponse)
async def change_part_status(part_id: str, body: ChangeStatusRequest) -> StatusChangeResponse:
    command = ChangePartStatus(
        part_id=part_id,
        status=body.status,
        actor=body.actor,
        reason=body.reason,
    )
    try:
        result = current_domain.process(command, asynchronous=False)
    except OrderNotFound as exc:
        raise _not_found(exc) from exc
    except TransitionRejected as exc:
        raise _rejected(exc) from exc
    return StatusChangeResponse(**result)


@order_router.post("/cancel", response_model=CancellationResponse)
async def cancel_order(body: CustomerCancelRequest) -> CancellationResponse:
    """Customer cancellation of a whole order, addressed by the order or any of its parts."""
    command = CancelOrderByCustomer(
        order_identifier=body.order_identifier,
        customer_email=body.customer_email,
        reason=body.reason,
    )
    try:
        result = current_domain.process(command, asynchronous=False)
    except OrderNotFound as exc:
        raise _not_found(exc) from exc
    except NotOrderOwner as exc:
        raise HTTPException(status_code=403, detail="You can only cancel your own orders") from exc
    except TransitionRejected as exc:
        raise _rejected(exc) from exc
    return CancellationResponse(**result)


@order_router.post("/{order_identifier}/items/cancel", response_model=ItemCancellationResponse)
async def cancel_order_items(order_identifier: str, body: CancelItemsRequest) -> ItemCancellationResponse:
    """Drop single items from an order that has not been forwarded to vendors."""
    command = CancelOrderItems(
        order_identifier=order_identifier,
        customer_email=body.customer_email,
        item_ids=json.dumps(body.item_ids),
        reason=body.reason,
    )
    try:
        result = current_domain.process(command, asynchronous=False)
    except OrderNotFound as exc:
        raise _not_found(exc) from exc
    except NotOrderOwner as exc:
        raise HTTPException(status_code=403, detail="You can only cancel your own orders") from exc
    except TransitionRejected as exc:
        raise _rejected(exc) from exc
    return ItemCancellationResponse(**result)


@order_router.get("/customers/{customer_email}", response_model=list[CustomerOrderResponse])
async def list_customer_orders(customer_email: str) -> list[CustomerOrderResponse]:
    orders = build_order_status_service().list_customer_orders(customer_email)
    return [CustomerOrderResponse(**order) for order in orders]


@order_router.get("/admin/{listing}", response_model=list[AdminOrderResponse])
async def list_admin_orders(listing: str, status: str | None = None) -> list[AdminOrderResponse]:
    """``admin_orders`` or ``vendor_orders``, optionally narrowed to one status."""
    orders = build_order_status_service().list_admin_orders(listing, status=status)
    return [AdminOrderResponse(**order) for order in orders]



@order_router.get("/{order_id}/status", response_model=DisplayStatusResponse)
async def get_order_status(order_id: str) -> DisplayStatusResponse:
    try:
        resolved = build_order_status_service().get_display_status(order_id)
    except OrderNotFound as exc:
        raise _not_found(exc) from exc
    return DisplayStatusResponse(**resolved.to_dict())
