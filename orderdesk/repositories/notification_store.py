"""
Durable log of cancellation notices for the staff dashboard.

Rows are snapshots (customer name, phone and total are copied in), so they stay
readable after the referenced order is purged.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from orderdesk.core.config import NOTIFICATION_LIST_LIMIT, NOTIFICATION_LIST_MAX
from orderdesk.models.notification import AdminNotification


async def create_notification(
    type: str,
    order_id: Optional[UUID],
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    total: Optional[Decimal] = None,
) -> AdminNotification:
    return await AdminNotification.create(
        type=type,
        order_id=str(order_id) if order_id is not None else None,
        customer_name=customer_name,
        customer_phone=customer_phone,
        total=total,
        read=False,
    )


async def list_notifications(limit: int = NOTIFICATION_LIST_LIMIT) -> List[AdminNotification]:
    """Most recent first, capped."""
    limit = max(1, min(int(limit), NOTIFICATION_LIST_MAX))
    return await AdminNotification.all().order_by("-created_at").limit(limit)


async def mark_read(notification_id: UUID) -> int:
    return await AdminNotification.filter(id=notification_id).update(read=True)


async def mark_all_read() -> int:
    return await AdminNotification.filter(read=False).update(read=True)


async def clear_all() -> int:
    return await AdminNotification.all().delete()
