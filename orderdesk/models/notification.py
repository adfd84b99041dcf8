from tortoise import fields, models
import uuid


class AdminNotification(models.Model):
    """
    Snapshot of an order event shown on the staff dashboard.
    Deliberately not a foreign key: the row outlives a purged order.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    type = fields.CharField(max_length=64)  # e.g. 'order_cancelled'
    order_id = fields.CharField(max_length=64, null=True)
    customer_name = fields.CharField(max_length=100, null=True)
    customer_phone = fields.CharField(max_length=20, null=True)
    total = fields.DecimalField(max_digits=12, decimal_places=2, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    read = fields.BooleanField(default=False)

    class Meta:
        table = "admin_notifications"
        indexes = [
            ("created_at",),
            ("read",),
        ]
