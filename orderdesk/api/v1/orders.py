import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from typing import Optional
from uuid import UUID

from orderdesk.core.config import ORDER_LIST_DEFAULT_LIMIT, ORDER_LIST_MAX_LIMIT, STREAM_KEEPALIVE_SECONDS
from orderdesk.core.deps import enforce_order_rate_limit, get_hub, get_payment_gateway
from orderdesk.core.errors import OrderDeskError, StaffOnly
from orderdesk.core.security import CurrentUser, get_current_user, get_optional_user, require_staff
from orderdesk.schemas.order import OrderPage, OrderStatusUpdate, OrderSubmission, serialize_order
from orderdesk.schemas.response import SuccessResponse
from orderdesk.services.broadcast_hub import BroadcastHub
from orderdesk.services.order_service import (
    cancel_order,
    delete_order,
    get_order_by_id,
    list_orders,
    place_order,
    update_order_status,
)
from orderdesk.services.payment_gateway import PaymentGateway

router = APIRouter()
log = logging.getLogger(__name__)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse,
    dependencies=[Depends(enforce_order_rate_limit)],
)
async def create_order_endpoint(
    submission: OrderSubmission,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    hub: BroadcastHub = Depends(get_hub),
):
    """
    Places a new order. Gateway payments are verified before anything is stored.
    """
    try:
        order, items = await place_order(
            submission.model_dump(),
            user_id=user.id if user else None,
            gateway=gateway,
            hub=hub,
        )
        return SuccessResponse(data=serialize_order(order, items).model_dump(mode="json"))
    except OrderDeskError as e:
        log.info(f"Order rejected ({e.code}): {e.message}")
        raise
    except Exception as e:
        log.error(f"Error placing order: {e}")
        raise HTTPException(status_code=500, detail="Server failed to place order.")


async def order_event_stream(request: Request, hub: BroadcastHub, keepalive: float = STREAM_KEEPALIVE_SECONDS):
    """
    Yields SSE frames for one client until it disconnects or is dropped by the hub.

    The subscription is taken on first iteration, so a client that goes away
    before the response starts never registers with the hub.
    """
    subscription = await hub.subscribe()
    try:
        while True:
            frame = await subscription.next_frame(timeout=keepalive)
            if frame is not None:
                yield frame
                continue
            if subscription.closed or await request.is_disconnected():
                break
            # Comment line keeps proxies from closing an idle connection
            yield ": keep-alive\n\n"
    finally:
        await hub.unsubscribe(subscription)


@router.get("/stream")
async def stream_orders_endpoint(request: Request, hub: BroadcastHub = Depends(get_hub)):
    """
    Server-push stream of order events. Emits ``init`` on connect, then
    ``order_created`` / ``order_status_updated`` / ``order_cancelled`` frames.
    """
    return StreamingResponse(
        order_event_stream(request, hub),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("", response_model=SuccessResponse)
async def list_orders_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(ORDER_LIST_DEFAULT_LIMIT, ge=1, le=ORDER_LIST_MAX_LIMIT),
    user: CurrentUser = Depends(get_current_user),
):
    """Staff see every order; customers may only list their own (``user_id`` = themselves)."""
    if not user.is_staff and (user_id is None or user_id != user.id):
        raise StaffOnly("Forbidden")
    try:
        rows, total = await list_orders(status_filter=status_filter, user_id=user_id, page=page, limit=limit)
        data = OrderPage(
            items=[serialize_order(order, items) for order, items in rows],
            total=total,
            page=page,
            limit=limit,
            total_pages=(total + limit - 1) // limit,
        ).model_dump(mode="json")
        return SuccessResponse(data=data)
    except OrderDeskError:
        raise
    except Exception as e:
        log.error(f"Error listing orders: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch orders.")


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: UUID):
    """Fetches details for a specific order; ``data`` is null when it does not exist."""
    try:
        found = await get_order_by_id(order_id)
    except Exception as e:
        log.error(f"Error fetching order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch order details.")
    if not found:
        return SuccessResponse(data=None)
    order, items = found
    return SuccessResponse(data=serialize_order(order, items).model_dump(mode="json"))


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(
    order_id: UUID,
    payload: OrderStatusUpdate,
    staff: CurrentUser = Depends(require_staff),
    hub: BroadcastHub = Depends(get_hub),
):
    """
    Updates status along pending -> preparing -> ready -> out_for_delivery -> delivered, or cancels.
    """
    try:
        order = await update_order_status(order_id, payload.status, hub)
        return SuccessResponse(data={"ok": True, "order_id": str(order.id), "status": order.status.value})
    except OrderDeskError:
        raise
    except Exception as e:
        log.error(f"Error updating order status: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update order status.")


@router.patch("/{order_id}/cancel", response_model=SuccessResponse)
async def cancel_order_endpoint(
    order_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    hub: BroadcastHub = Depends(get_hub),
):
    """
    Lets a customer cancel their own order while it is still pending.
    """
    try:
        order = await cancel_order(order_id, user.id, hub)
        return SuccessResponse(data={"ok": True, "order_id": str(order.id), "status": order.status.value})
    except OrderDeskError:
        raise
    except Exception as e:
        log.error(f"Error cancelling order: {e}")
        raise HTTPException(status_code=500, detail="Server failed to cancel order.")


@router.delete("/{order_id}", response_model=SuccessResponse)
async def delete_order_endpoint(
    order_id: UUID,
    staff: CurrentUser = Depends(require_staff),
    hub: BroadcastHub = Depends(get_hub),
):
    """Hard delete (items, then the order). Staff only."""
    try:
        await delete_order(order_id, hub)
        return SuccessResponse(data={"ok": True})
    except OrderDeskError:
        raise
    except Exception as e:
        log.error(f"Error deleting order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to delete order.")
