from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from decimal import Decimal
import uuid

from orderdesk.models.order import Order, OrderItem, OrderStatus, OrderType, PaymentMethod, PaymentStatus


class OrderSubmission(BaseModel):
    """
    Raw checkout payload. Fields are intentionally loose: the order validator
    decides what is acceptable so a single bad line item never turns into a 422.
    """
    model_config = ConfigDict(extra="allow")

    customer_name: Any = None
    customer_phone: Any = None
    delivery_address: Any = None
    order_type: Any = None
    subtotal: Any = None
    delivery_fee: Any = None
    total: Any = None
    payment_method: Any = None
    paystack_reference: Any = None
    special_instructions: Any = None
    items: Any = None


class OrderItemDraft(BaseModel):
    """A line item that survived sanitization."""
    item_name: str
    quantity: int
    unit_price: Decimal
    special_instructions: Optional[str] = None
    menu_item_id: Optional[str] = None


class OrderDraft(BaseModel):
    """Normalized order produced by the validator, ready to persist."""
    customer_name: str
    customer_phone: str
    delivery_address: str = ""
    order_type: OrderType
    subtotal: Decimal
    delivery_fee: Decimal = Decimal("0")
    total: Decimal
    payment_method: PaymentMethod
    paystack_reference: Optional[str] = None
    special_instructions: Optional[str] = None
    items: List[OrderItemDraft]
    dropped_items: int = 0


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status. Checked against the state machine by the service."""
    status: str = Field(..., description="Target status, e.g. 'preparing' or 'cancelled'.")


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    id: uuid.UUID
    menu_item_id: Optional[str] = None
    item_name: str
    quantity: int
    unit_price: float
    special_instructions: Optional[str] = None


class OrderResponse(BaseModel):
    """Schema for fetching detailed order information."""
    id: uuid.UUID
    user_id: Optional[str] = None
    customer_name: str
    customer_phone: str
    delivery_address: str
    order_type: OrderType
    status: OrderStatus
    subtotal: float
    delivery_fee: float
    total: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    special_instructions: Optional[str] = None
    created_at: str
    updated_at: str
    order_items: List[OrderItemResponse] = []


class OrderPage(BaseModel):
    """Paginated order listing."""
    items: List[OrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


def serialize_item(item: OrderItem) -> OrderItemResponse:
    return OrderItemResponse(
        id=item.id,
        menu_item_id=item.menu_item_id,
        item_name=item.item_name,
        quantity=item.quantity,
        unit_price=float(item.unit_price),
        special_instructions=item.special_instructions,
    )


def serialize_order(order: Order, items: Optional[List[OrderItem]] = None) -> OrderResponse:
    """Builds the response schema from an ORM row; items are passed in because the relation may not be fetched."""
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        delivery_address=order.delivery_address or "",
        order_type=order.order_type,
        status=order.status,
        subtotal=float(order.subtotal),
        delivery_fee=float(order.delivery_fee or 0),
        total=float(order.total),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        payment_reference=order.payment_reference,
        special_instructions=order.special_instructions,
        created_at=str(order.created_at),
        updated_at=str(order.updated_at),
        order_items=[serialize_item(i) for i in (items or [])],
    )
