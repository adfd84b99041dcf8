import json

import pytest

from orderdesk.api.v1.orders import order_event_stream
from orderdesk.services.broadcast_hub import BroadcastHub, encode_frame


def decode(frame):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):-2])


class FakeRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self):
        return self.disconnected


class TestBroadcastHub:
    def test_encode_frame(self):
        assert encode_frame({"type": "init"}) == 'data: {"type": "init"}\n\n'

    @pytest.mark.asyncio
    async def test_subscriber_receives_init_first(self):
        hub = BroadcastHub()
        subscription = await hub.subscribe()

        assert hub.subscriber_count == 1
        assert decode(await subscription.next_frame(timeout=1)) == {"type": "init"}

    @pytest.mark.asyncio
    async def test_publish_reaches_every_subscriber(self):
        hub = BroadcastHub()
        first = await hub.subscribe()
        second = await hub.subscribe()

        delivered = await hub.publish({"type": "order_created", "order_id": "abc"})

        assert delivered == 2
        for subscription in (first, second):
            await subscription.next_frame(timeout=1)  # init
            assert decode(await subscription.next_frame(timeout=1))["order_id"] == "abc"

    @pytest.mark.asyncio
    async def test_late_subscriber_gets_no_backlog(self):
        hub = BroadcastHub()
        await hub.publish({"type": "order_created", "order_id": "early"})

        subscription = await hub.subscribe()
        assert decode(await subscription.next_frame(timeout=1)) == {"type": "init"}
        assert await subscription.next_frame(timeout=0.01) is None

    @pytest.mark.asyncio
    async def test_full_subscriber_is_dropped(self):
        hub = BroadcastHub(queue_size=2)
        slow = await hub.subscribe()  # init takes one slot
        fast = await hub.subscribe()

        await hub.publish({"type": "order_created", "order_id": "1"})
        await fast.next_frame(timeout=1)
        await fast.next_frame(timeout=1)
        delivered = await hub.publish({"type": "order_created", "order_id": "2"})

        assert delivered == 1
        assert slow.closed is True
        assert hub.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_unsubscribed_client_gets_nothing(self):
        hub = BroadcastHub()
        subscription = await hub.subscribe()
        await hub.unsubscribe(subscription)

        assert await hub.publish({"type": "order_deleted", "order_id": "x"}) == 0
        assert subscription.closed is True

    @pytest.mark.asyncio
    async def test_close_drops_everyone(self):
        hub = BroadcastHub()
        subscription = await hub.subscribe()
        await hub.close()

        assert hub.subscriber_count == 0
        assert subscription.closed is True


class TestOrderEventStream:
    @pytest.mark.asyncio
    async def test_unstarted_stream_registers_nothing(self):
        hub = BroadcastHub()
        stream = order_event_stream(FakeRequest(), hub, keepalive=0.01)

        assert hub.subscriber_count == 0
        await stream.aclose()
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_stream_yields_frames_then_keepalive(self):
        hub = BroadcastHub()
        stream = order_event_stream(FakeRequest(), hub, keepalive=0.01)

        assert decode(await stream.__anext__()) == {"type": "init"}
        assert hub.subscriber_count == 1
        await hub.publish({"type": "order_status_updated", "order_id": "o1", "status": "ready"})
        assert decode(await stream.__anext__())["status"] == "ready"
        assert await stream.__anext__() == ": keep-alive\n\n"
        await stream.aclose()

        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_disconnect_ends_stream_and_unsubscribes(self):
        hub = BroadcastHub()
        request = FakeRequest()
        stream = order_event_stream(request, hub, keepalive=0.01)

        await stream.__anext__()  # init
        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

        assert hub.subscriber_count == 0
