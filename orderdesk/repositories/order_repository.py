"""
Durable storage of orders and their line items.

No multi-statement transactions are used: the order row is committed on its
own, and each item after it. Callers rely on that ordering (see insert_items).
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from tortoise import timezone

from orderdesk.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from orderdesk.schemas.order import OrderDraft, OrderItemDraft

log = logging.getLogger(__name__)

TERMINAL_STATUSES = [OrderStatus.DELIVERED, OrderStatus.CANCELLED]


async def insert_order(draft: OrderDraft, user_id: Optional[str], payment_status: PaymentStatus) -> Order:
    """Writes the order header. Once this returns, the order exists."""
    return await Order.create(
        id=uuid4(),
        user_id=user_id,
        customer_name=draft.customer_name,
        customer_phone=draft.customer_phone,
        delivery_address=draft.delivery_address,
        order_type=draft.order_type,
        status=OrderStatus.PENDING,
        subtotal=draft.subtotal,
        delivery_fee=draft.delivery_fee,
        total=draft.total,
        payment_method=draft.payment_method,
        payment_status=payment_status,
        payment_reference=draft.paystack_reference,
        special_instructions=draft.special_instructions,
    )


async def insert_items(order: Order, items: List[OrderItemDraft]) -> List[OrderItem]:
    """
    Inserts line items one by one after the order has committed.

    A failing item is logged and skipped; it never undoes the order.
    """
    persisted = []
    for item in items:
        try:
            row = await OrderItem.create(
                order=order,
                menu_item_id=item.menu_item_id,
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                special_instructions=item.special_instructions,
            )
            persisted.append(row)
        except Exception:
            log.exception(f"[Order: {order.id}] Item '{item.item_name}' could not be stored; skipping.")
    if len(persisted) < len(items):
        log.error(f"[Order: {order.id}] Stored {len(persisted)} of {len(items)} items.")
    return persisted


async def get_order(order_id: UUID) -> Optional[Order]:
    return await Order.get_or_none(id=order_id)


async def get_items(order_id: UUID) -> List[OrderItem]:
    return await OrderItem.filter(order_id=order_id).order_by("created_at")


async def get_order_with_items(order_id: UUID) -> Optional[Tuple[Order, List[OrderItem]]]:
    """Fetches an order and its items, or None."""
    order = await get_order(order_id)
    if order is None:
        return None
    return order, await get_items(order_id)


async def list_orders(
    status: Optional[OrderStatus] = None,
    active_only: bool = False,
    user_id: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Tuple[Order, List[OrderItem]]], int]:
    """
    Newest-first page of orders with their items.

    Returns:
        ((order, items) pairs, total matching orders)
    """
    query = Order.all()
    if user_id is not None:
        query = query.filter(user_id=user_id)
    if active_only:
        query = query.filter(status__not_in=TERMINAL_STATUSES)
    elif status is not None:
        query = query.filter(status=status)

    total = await query.count()
    orders = await query.order_by("-created_at").offset((page - 1) * limit).limit(limit)

    # One query for all items on the page (N+1 avoidance)
    items_by_order: Dict[UUID, List[OrderItem]] = defaultdict(list)
    if orders:
        items = await OrderItem.filter(order_id__in=[o.id for o in orders]).order_by("created_at")
        for item in items:
            items_by_order[item.order_id].append(item)

    return [(o, items_by_order.get(o.id, [])) for o in orders], total


async def transition_status(order_id: UUID, expected: OrderStatus, new_status: OrderStatus) -> int:
    """
    Conditional status write: only applies while the row is still in ``expected``.

    Returns:
        int: Rows affected (0 means another request changed the order first).
    """
    return await Order.filter(id=order_id, status=expected).update(
        status=new_status,
        updated_at=timezone.now(),
    )


async def delete_order(order_id: UUID) -> bool:
    """Administrative purge: items first, then the order. True if an order row was removed."""
    await OrderItem.filter(order_id=order_id).delete()
    deleted = await Order.filter(id=order_id).delete()
    return deleted > 0
