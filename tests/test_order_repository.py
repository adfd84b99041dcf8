import pytest
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

from orderdesk.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from orderdesk.repositories import notification_store, order_repository
from orderdesk.services.order_validator import validate_order
from tests.conftest import order_payload


async def create_order(user_id="user-123", **overrides):
    draft = validate_order(order_payload(**overrides))
    order = await order_repository.insert_order(draft, user_id, PaymentStatus.PENDING)
    items = await order_repository.insert_items(order, draft.items)
    return order, items


class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_insert_and_fetch_with_items(self, db):
        order, items = await create_order()

        found_order, found_items = await order_repository.get_order_with_items(order.id)

        assert found_order.status == OrderStatus.PENDING
        assert found_order.total == Decimal("80.00")
        assert found_order.user_id == "user-123"
        assert [i.item_name for i in found_items] == ["Jollof Rice", "Kelewele"]
        assert found_items[0].menu_item_id == "menu-1"

    @pytest.mark.asyncio
    async def test_missing_order_is_none(self, db):
        assert await order_repository.get_order_with_items(uuid4()) is None

    @pytest.mark.asyncio
    async def test_failing_item_is_skipped_and_order_kept(self, db):
        draft = validate_order(order_payload())
        order = await order_repository.insert_order(draft, None, PaymentStatus.PENDING)

        real_create = OrderItem.create
        calls = {"n": 0}

        async def flaky_create(**kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("constraint violated")
            return await real_create(**kwargs)

        with patch.object(OrderItem, "create", side_effect=flaky_create):
            stored = await order_repository.insert_items(order, draft.items)

        assert [i.item_name for i in stored] == ["Kelewele"]
        assert await Order.filter(id=order.id).exists()

    @pytest.mark.asyncio
    async def test_list_filters_and_paginates(self, db):
        first, _ = await create_order(user_id="user-a")
        second, _ = await create_order(user_id="user-a")
        third, _ = await create_order(user_id="user-b")
        await order_repository.transition_status(third.id, OrderStatus.PENDING, OrderStatus.CANCELLED)

        rows, total = await order_repository.list_orders(user_id="user-a", page=1, limit=1)
        assert total == 2
        assert len(rows) == 1
        assert len(rows[0][1]) == 2

        active, active_total = await order_repository.list_orders(active_only=True)
        assert active_total == 2
        assert {o.id for o, _ in active} == {first.id, second.id}

        cancelled, cancelled_total = await order_repository.list_orders(status=OrderStatus.CANCELLED)
        assert cancelled_total == 1
        assert cancelled[0][0].id == third.id

    @pytest.mark.asyncio
    async def test_conditional_transition(self, db):
        order, _ = await create_order()

        assert await order_repository.transition_status(order.id, OrderStatus.PENDING, OrderStatus.PREPARING) == 1
        # stale expectation: someone already moved it
        assert await order_repository.transition_status(order.id, OrderStatus.PENDING, OrderStatus.CANCELLED) == 0

        reloaded = await order_repository.get_order(order.id)
        assert reloaded.status == OrderStatus.PREPARING

    @pytest.mark.asyncio
    async def test_delete_removes_items_too(self, db):
        order, _ = await create_order()

        assert await order_repository.delete_order(order.id) is True
        assert await OrderItem.filter(order_id=order.id).count() == 0
        assert await order_repository.delete_order(order.id) is False


class TestNotificationStore:
    @pytest.mark.asyncio
    async def test_create_and_list_newest_first(self, db):
        order_id = uuid4()
        await notification_store.create_notification("order_cancelled", order_id, "Ama", "0241234567", Decimal("80.00"))
        await notification_store.create_notification("order_cancelled", uuid4(), "Kofi", "0209876543", Decimal("15.00"))

        rows = await notification_store.list_notifications()

        assert len(rows) == 2
        assert rows[0].customer_name == "Kofi"
        assert rows[1].order_id == str(order_id)
        assert rows[1].read is False

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, db):
        for _ in range(3):
            await notification_store.create_notification("order_cancelled", uuid4())
        assert len(await notification_store.list_notifications(limit=2)) == 2
        assert len(await notification_store.list_notifications(limit=0)) == 1

    @pytest.mark.asyncio
    async def test_mark_read_and_clear(self, db):
        first = await notification_store.create_notification("order_cancelled", uuid4())
        await notification_store.create_notification("order_cancelled", uuid4())

        assert await notification_store.mark_read(first.id) == 1
        assert await notification_store.mark_all_read() == 1
        assert all(n.read for n in await notification_store.list_notifications())
        assert await notification_store.clear_all() == 2
        assert await notification_store.list_notifications() == []

    @pytest.mark.asyncio
    async def test_snapshot_survives_order_purge(self, db):
        order, _ = await create_order()
        await notification_store.create_notification(
            "order_cancelled", order.id, order.customer_name, order.customer_phone, order.total
        )
        await order_repository.delete_order(order.id)

        [notice] = await notification_store.list_notifications()
        assert notice.customer_name == "Ama Mensah"
        assert notice.total == Decimal("80.00")
