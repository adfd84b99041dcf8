# orderdesk/models/__init__.py
from .order import Order, OrderItem, OrderStatus, OrderType, PaymentMethod, PaymentStatus
from .notification import AdminNotification

# Export all models
__all__ = [
    "AdminNotification",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "PaymentMethod",
    "PaymentStatus",
]
