"""
In-process fan-out of order events to live dashboard connections.

The hub is an invalidation signal, not a log: nothing is stored or replayed,
and a subscriber that connects after an event simply never sees it. Dashboards
re-query the order list when they (re)connect.
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

from orderdesk.core.config import STREAM_QUEUE_SIZE

log = logging.getLogger(__name__)

INIT_EVENT = {"type": "init"}


def encode_frame(event: Dict[str, Any]) -> str:
    """Serializes an event as a single server-sent-events data frame."""
    return f"data: {json.dumps(event, default=str)}\n\n"


class Subscription:
    """One connected client: a bounded queue of pre-encoded frames."""

    def __init__(self, queue_size: int = STREAM_QUEUE_SIZE):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False

    def offer(self, frame: str) -> bool:
        """Queues a frame without waiting; False means the subscriber is gone or too far behind."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    async def next_frame(self, timeout: Optional[float] = None) -> Optional[str]:
        """Waits for the next frame; None when the timeout elapses."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self):
        self.closed = True


class BroadcastHub:
    """
    Registry of live subscriptions.

    Registry mutations go through an asyncio lock; publishing never awaits a
    subscriber, so a stalled client cannot slow down the request that publishes.
    """

    def __init__(self, queue_size: int = STREAM_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: Set[Subscription] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> Subscription:
        """Registers a new client and hands it the synthetic ``init`` frame right away."""
        subscription = Subscription(self.queue_size)
        subscription.offer(encode_frame(INIT_EVENT))
        async with self._lock:
            self._subscribers.add(subscription)
        log.info(f"Stream subscriber connected ({self.subscriber_count} live).")
        return subscription

    async def unsubscribe(self, subscription: Subscription):
        subscription.close()
        async with self._lock:
            self._subscribers.discard(subscription)
        log.info(f"Stream subscriber disconnected ({self.subscriber_count} live).")

    async def publish(self, event: Dict[str, Any]) -> int:
        """
        Sends ``event`` to every live subscriber.

        Returns:
            int: Number of subscribers the frame was queued for.
        """
        frame = encode_frame(event)
        delivered = 0
        async with self._lock:
            for subscription in list(self._subscribers):
                if subscription.offer(frame):
                    delivered += 1
                else:
                    # closed or hopelessly behind: drop it, the client will reconnect and re-query
                    subscription.close()
                    self._subscribers.discard(subscription)
                    log.warning("Dropped a stream subscriber that could not keep up.")
        log.debug(f"Published {event.get('type')} to {delivered} subscriber(s).")
        return delivered

    async def close(self):
        """Closes every subscription (application shutdown)."""
        async with self._lock:
            for subscription in self._subscribers:
                subscription.close()
            self._subscribers.clear()
