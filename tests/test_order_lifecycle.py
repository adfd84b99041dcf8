"""End-to-end order flows against an in-memory database and a real hub."""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from orderdesk.core.errors import InvalidStatusTransition, PaymentAmountMismatch
from orderdesk.models.notification import AdminNotification
from orderdesk.models.order import Order, OrderStatus, PaymentStatus
from orderdesk.services.broadcast_hub import BroadcastHub
from orderdesk.services.order_service import cancel_order, place_order, update_order_status
from orderdesk.services.payment_gateway import VerificationResult
from tests.conftest import order_payload


def drain(subscription):
    events = []
    while subscription.pending():
        frame = subscription._queue.get_nowait()
        events.append(json.loads(frame[len("data: "):-2]))
    return events


@pytest.fixture
def gateway():
    mock_gateway = MagicMock()
    mock_gateway.verify = AsyncMock(return_value=VerificationResult(ok=True, amount=8000, reference="ref_ok"))
    return mock_gateway


@pytest.mark.asyncio
async def test_owner_cancel_is_announced_exactly_once(db, gateway):
    hub = BroadcastHub()
    watcher = await hub.subscribe()
    order, _ = await place_order(order_payload(), "user-abc", gateway, hub)

    await cancel_order(order.id, "user-abc", hub)
    with pytest.raises(InvalidStatusTransition):
        await cancel_order(order.id, "user-abc", hub)
    with pytest.raises(InvalidStatusTransition):
        await update_order_status(order.id, "cancelled", hub)

    events = drain(watcher)
    assert [e["type"] for e in events] == ["init", "order_created", "order_status_updated", "order_cancelled"]
    assert events[-1]["customer_name"] == "Ama Mensah"
    assert events[-1]["total"] == 80.0
    assert await AdminNotification.filter(order_id=str(order.id)).count() == 1
    assert (await Order.get(id=order.id)).status == OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_staff_walks_delivery_to_completion(db, gateway):
    hub = BroadcastHub()
    order, _ = await place_order(order_payload(), None, gateway, hub)

    for status in ("preparing", "ready", "out_for_delivery", "delivered"):
        await update_order_status(order.id, status, hub)

    assert (await Order.get(id=order.id)).status == OrderStatus.DELIVERED
    with pytest.raises(InvalidStatusTransition):
        await update_order_status(order.id, "cancelled", hub)
    assert await AdminNotification.all().count() == 0


@pytest.mark.asyncio
async def test_verified_gateway_order_is_paid(db, gateway):
    hub = BroadcastHub()
    payload = order_payload(payment_method="paystack", paystack_reference="ref_ok")

    order, items = await place_order(payload, None, gateway, hub)

    stored = await Order.get(id=order.id)
    assert stored.payment_status == PaymentStatus.PAID
    assert stored.payment_reference == "ref_ok"
    assert len(items) == 2


@pytest.mark.asyncio
async def test_underpaid_gateway_order_is_not_stored(db, gateway):
    gateway.verify.return_value = VerificationResult(ok=True, amount=100, reference="ref_low")
    payload = order_payload(payment_method="paystack", paystack_reference="ref_low")

    with pytest.raises(PaymentAmountMismatch):
        await place_order(payload, None, gateway, BroadcastHub())
    assert await Order.all().count() == 0
