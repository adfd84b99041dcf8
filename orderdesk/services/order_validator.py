"""
Sanitization and validation of checkout payloads.

Everything here is a pure function of its input: no database, no clock, no
logging side effects. The first rule an order breaks is raised as an
``OrderValidationError``; a broken line item is dropped instead, as long as at
least one item survives.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Mapping, Optional, Tuple

from orderdesk.core.errors import OrderValidationError
from orderdesk.models.order import OrderType, PaymentMethod
from orderdesk.schemas.order import OrderDraft, OrderItemDraft

MAX_SUBTOTAL = Decimal("100000")
MAX_DELIVERY_FEE = Decimal("10000")
MAX_TOTAL = Decimal("100000")
MAX_ITEM_PRICE = Decimal("10000")
MAX_ITEM_QUANTITY = 100
MAX_ITEMS = 50

_ANGLE_BRACKETS = re.compile(r"[<>]")
_CENT = Decimal("1")


def sanitize_string(value: Any, max_length: int = 1000) -> str:
    """Trims, strips angle brackets and truncates; non-strings become ''."""
    if not isinstance(value, str):
        return ""
    return _ANGLE_BRACKETS.sub("", value).strip()[:max_length]


def sanitize_number(value: Any, minimum: Decimal, maximum: Decimal) -> Optional[Decimal]:
    """Parses a finite number and clamps it into [minimum, maximum]; None when unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return max(minimum, min(maximum, parsed))


def to_minor_units(amount: Decimal) -> int:
    """Converts a major-unit amount to an integer count of cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(_CENT, rounding=ROUND_HALF_UP))


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _sanitize_money(value: Any, maximum: Decimal) -> Optional[Decimal]:
    """Like sanitize_number with a floor of 0, but already rounded to cents."""
    parsed = sanitize_number(value, Decimal("0"), maximum)
    return _money(parsed) if parsed is not None else None


def sanitize_item(raw: Any) -> Optional[OrderItemDraft]:
    """Returns a clean line item, or None when the item has to be dropped."""
    if not isinstance(raw, Mapping):
        return None

    name = sanitize_string(raw.get("name") or raw.get("item_name"), 200)
    if not name:
        return None

    quantity = sanitize_number(raw.get("quantity"), Decimal("-Infinity"), Decimal(MAX_ITEM_QUANTITY))
    if quantity is None or quantity != quantity.to_integral_value() or quantity < 1:
        return None

    price = sanitize_number(raw.get("price", raw.get("unit_price")), Decimal("-Infinity"), MAX_ITEM_PRICE)
    if price is None or price < 0:
        return None

    menu_item_id = raw.get("menu_item_id", raw.get("id"))
    return OrderItemDraft(
        item_name=name,
        quantity=int(quantity),
        unit_price=_money(price),
        special_instructions=sanitize_string(raw.get("special_instructions"), 500) or None,
        menu_item_id=str(menu_item_id)[:64] if menu_item_id not in (None, "") else None,
    )


def sanitize_items(raw_items: Any) -> Tuple[List[OrderItemDraft], int]:
    """Validates the item list; returns (kept items, number dropped)."""
    if not isinstance(raw_items, list) or len(raw_items) == 0:
        raise OrderValidationError("items", "Order must contain at least one item")
    if len(raw_items) > MAX_ITEMS:
        raise OrderValidationError("items", f"Order cannot contain more than {MAX_ITEMS} items")

    kept = [item for item in (sanitize_item(raw) for raw in raw_items) if item is not None]
    if not kept:
        raise OrderValidationError("items", "Order must contain at least one valid item")
    return kept, len(raw_items) - len(kept)


def validate_order(payload: Mapping[str, Any]) -> OrderDraft:
    """
    Normalizes a raw order submission.

    Raises:
        OrderValidationError: on the first rule the order breaks.
    """
    customer_name = sanitize_string(payload.get("customer_name"), 100)
    if len(customer_name) < 2:
        raise OrderValidationError("customer_name", "Valid customer name is required")

    customer_phone = sanitize_string(payload.get("customer_phone"), 20)
    if len(customer_phone) < 10:
        raise OrderValidationError("customer_phone", "Valid phone number is required")

    try:
        order_type = OrderType(payload.get("order_type"))
    except ValueError:
        raise OrderValidationError("order_type", "Invalid order type")

    delivery_address = sanitize_string(payload.get("delivery_address"), 500)
    if order_type is OrderType.DELIVERY and len(delivery_address) < 5:
        raise OrderValidationError("delivery_address", "Delivery address is required")
    if order_type is OrderType.PICKUP:
        delivery_address = ""

    subtotal = _sanitize_money(payload.get("subtotal"), MAX_SUBTOTAL)
    if not subtotal or subtotal <= 0:
        raise OrderValidationError("subtotal", "Invalid subtotal")

    delivery_fee = _sanitize_money(payload.get("delivery_fee"), MAX_DELIVERY_FEE) or Decimal("0.00")

    total = _sanitize_money(payload.get("total"), MAX_TOTAL)
    if not total or total <= 0:
        raise OrderValidationError("total", "Invalid total")

    if to_minor_units(subtotal) + to_minor_units(delivery_fee) != to_minor_units(total):
        raise OrderValidationError("total", "Total does not match subtotal plus delivery fee")

    items, dropped = sanitize_items(payload.get("items"))

    try:
        payment_method = PaymentMethod(payload.get("payment_method"))
    except ValueError:
        raise OrderValidationError("payment_method", "Invalid payment method")

    reference = payload.get("paystack_reference")
    paystack_reference = sanitize_string(reference, 100) or None

    return OrderDraft(
        customer_name=customer_name,
        customer_phone=customer_phone,
        delivery_address=delivery_address,
        order_type=order_type,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total=total,
        payment_method=payment_method,
        paystack_reference=paystack_reference,
        special_instructions=sanitize_string(payload.get("special_instructions"), 500) or None,
        items=items,
        dropped_items=dropped,
    )
