from pydantic import BaseModel
from typing import Optional
import uuid

from orderdesk.models.notification import AdminNotification


class NotificationResponse(BaseModel):
    """Schema for a dashboard notification."""
    id: uuid.UUID
    type: str
    order_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    total: Optional[float] = None
    created_at: str
    read: bool


def serialize_notification(row: AdminNotification) -> NotificationResponse:
    return NotificationResponse(
        id=row.id,
        type=row.type,
        order_id=row.order_id,
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        total=float(row.total) if row.total is not None else None,
        created_at=str(row.created_at),
        read=row.read,
    )
