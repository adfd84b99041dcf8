import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from orderdesk.core.errors import (
    InvalidStatusTransition,
    NotOrderOwner,
    OrderConflict,
    OrderNotFound,
    OrderPersistenceError,
    PaymentAmountMismatch,
    PaymentNotCompleted,
    PaymentReferenceRequired,
)
from orderdesk.events.post_commit import (
    order_cancelled_event,
    order_created_event,
    order_deleted_event,
    order_status_updated_event,
    run_post_commit,
)
from orderdesk.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from orderdesk.repositories import notification_store, order_repository
from orderdesk.services.broadcast_hub import BroadcastHub
from orderdesk.services.order_validator import to_minor_units, validate_order
from orderdesk.services.payment_gateway import PaymentGateway

log = logging.getLogger(__name__)

# --- ORDER STATE MACHINE ---
# Forward path plus cancellation from any non-terminal state. DELIVERED and
# CANCELLED have no outgoing edges.
ORDER_TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED),
    OrderStatus.OUT_FOR_DELIVERY: (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}


def parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusTransition("Invalid status", {"status": value})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS.get(current, ())


async def place_order(
    payload: Mapping[str, Any],
    user_id: Optional[str],
    gateway: PaymentGateway,
    hub: BroadcastHub,
) -> Tuple[Order, List[OrderItem]]:
    """
    Validates, reconciles payment, persists and announces a new order.

    The order row is the durability boundary: item failures after it are
    logged only, and the broadcast is best-effort.
    """
    draft = validate_order(payload)
    if draft.dropped_items:
        log.warning(f"Dropped {draft.dropped_items} invalid item(s) from submission.")

    payment_status = PaymentStatus.PENDING
    if draft.payment_method is PaymentMethod.PAYSTACK:
        if not draft.paystack_reference:
            raise PaymentReferenceRequired("Payment reference required")

        verified = await gateway.verify(draft.paystack_reference)
        if not verified.ok:
            raise PaymentNotCompleted("Payment not completed")

        expected_minor = to_minor_units(draft.total)
        if verified.amount != expected_minor:
            log.warning(
                f"[Payment: {draft.paystack_reference}] Amount mismatch: "
                f"gateway={verified.amount} expected={expected_minor}"
            )
            raise PaymentAmountMismatch(
                "Payment amount mismatch",
                {"expected": expected_minor, "verified": verified.amount},
            )
        # Store the gateway's canonical reference, not whatever the client sent
        draft.paystack_reference = verified.reference or draft.paystack_reference
        payment_status = PaymentStatus.PAID

    try:
        order = await order_repository.insert_order(draft, user_id, payment_status)
    except Exception as e:
        log.error(f"Order insertion failed: {e}")
        raise OrderPersistenceError("Failed to create order")

    items = await order_repository.insert_items(order, draft.items)
    log.info(f"Order {order.id} placed ({len(items)} item(s), payment {payment_status.value}).")

    await run_post_commit("broadcast order_created", hub.publish, order_created_event(order.id))
    return order, items


async def get_order_by_id(order_id: UUID) -> Optional[Tuple[Order, List[OrderItem]]]:
    """Fetches an order together with its items."""
    return await order_repository.get_order_with_items(order_id)


async def list_orders(
    status_filter: Optional[str] = None,
    user_id: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
):
    """
    Lists orders newest first. ``status_filter`` is 'all', 'active' (not yet
    delivered or cancelled) or a concrete status.
    """
    status = None
    active_only = False
    if status_filter == "active":
        active_only = True
    elif status_filter and status_filter != "all":
        status = parse_status(status_filter)
    return await order_repository.list_orders(
        status=status, active_only=active_only, user_id=user_id, page=page, limit=limit
    )


async def _announce_cancellation(order: Order, hub: BroadcastHub):
    """Broadcast plus durable dashboard notice; both after the status write, both best-effort."""
    total = float(order.total) if order.total is not None else None
    await run_post_commit(
        "broadcast order_cancelled",
        hub.publish,
        order_cancelled_event(order.id, order.customer_name, order.customer_phone, total),
    )
    await run_post_commit(
        "admin notification",
        notification_store.create_notification,
        "order_cancelled",
        order.id,
        order.customer_name,
        order.customer_phone,
        order.total,
    )


async def update_order_status(order_id: UUID, new_status: Any, hub: BroadcastHub) -> Order:
    """
    Staff status change, enforced against the state machine.

    The write is conditional on the status we validated against, so two racing
    changes cannot both succeed and only the winner emits events.
    """
    target = parse_status(new_status)

    order = await order_repository.get_order(order_id)
    if not order:
        raise OrderNotFound("Order not found")

    current = OrderStatus(order.status)
    if not can_transition(current, target):
        raise InvalidStatusTransition(
            f"Cannot move order from {current.value} to {target.value}",
            {"from": current.value, "to": target.value},
        )

    updated = await order_repository.transition_status(order_id, current, target)
    if updated == 0:
        raise OrderConflict("Order was modified concurrently; reload and retry")

    order.status = target
    log.info(f"Order {order_id} moved {current.value} -> {target.value}.")

    await run_post_commit(
        "broadcast order_status_updated",
        hub.publish,
        order_status_updated_event(order_id, target.value),
    )
    if target is OrderStatus.CANCELLED:
        await _announce_cancellation(order, hub)
    return order


async def cancel_order(order_id: UUID, requester_id: Optional[str], hub: BroadcastHub) -> Order:
    """
    Customer-initiated cancel: only the owner, and only while the order is still pending.
    """
    order = await order_repository.get_order(order_id)
    if not order:
        raise OrderNotFound("Order not found")

    if requester_id is None or order.user_id != requester_id:
        raise NotOrderOwner("You can only cancel your own orders")

    if order.status != OrderStatus.PENDING:
        raise InvalidStatusTransition("Only pending orders can be cancelled", {"status": getattr(order.status, "value", order.status)})

    updated = await order_repository.transition_status(order_id, OrderStatus.PENDING, OrderStatus.CANCELLED)
    if updated == 0:
        # Staff picked it up (or cancelled it) between our read and write
        raise InvalidStatusTransition("Only pending orders can be cancelled")

    order.status = OrderStatus.CANCELLED
    log.info(f"Order {order_id} cancelled by its owner.")

    await run_post_commit(
        "broadcast order_status_updated",
        hub.publish,
        order_status_updated_event(order_id, OrderStatus.CANCELLED.value),
    )
    await _announce_cancellation(order, hub)
    return order


async def delete_order(order_id: UUID, hub: BroadcastHub) -> None:
    """Administrative purge of an order and its items."""
    deleted = await order_repository.delete_order(order_id)
    if not deleted:
        raise OrderNotFound("Order not found")
    log.info(f"Order {order_id} deleted.")
    await run_post_commit("broadcast order_deleted", hub.publish, order_deleted_event(order_id))
