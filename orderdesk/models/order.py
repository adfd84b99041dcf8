from enum import Enum
from tortoise import fields, models
import uuid


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class PaymentMethod(str, Enum):
    MTN = "mtn"                          # mobile money, provider A
    VODAFONE = "vodafone"                # mobile money, provider B
    AIRTELTIGO = "airteltigo"            # mobile money, provider C
    PAY_ON_DELIVERY = "pay_on_delivery"  # settled at handover
    PAYSTACK = "paystack"                # hosted card gateway, verified before insert


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderStatus(str, Enum):
    PENDING = "pending"  # Initial state for every order
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    user_id = fields.CharField(max_length=64, null=True)  # null for guest checkout
    customer_name = fields.CharField(max_length=100)
    customer_phone = fields.CharField(max_length=20)
    delivery_address = fields.CharField(max_length=500, default="")
    order_type = fields.CharEnumField(OrderType)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    subtotal = fields.DecimalField(max_digits=12, decimal_places=2)
    delivery_fee = fields.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = fields.DecimalField(max_digits=12, decimal_places=2)
    payment_method = fields.CharEnumField(PaymentMethod)
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.PENDING)
    payment_reference = fields.CharField(max_length=100, null=True)
    special_instructions = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        indexes = [
            ("status",),                 # Status-based filtering
            ("user_id",),                # User order history
            ("created_at",),             # Time-based queries
            ("status", "created_at"),    # Composite: status with time
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items", on_delete=fields.CASCADE)
    # Weak reference to the catalog; the item may since have been deleted
    menu_item_id = fields.CharField(max_length=64, null=True)
    item_name = fields.CharField(max_length=200)  # snapshot taken at order time
    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    special_instructions = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
        ]
