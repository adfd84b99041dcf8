"""
Per-client throttle on order creation.

Counting is delegated to the ``limits`` library (moving window, in-memory
storage by default). Pass a shared storage such as ``limits.storage.RedisStorage``
when several app processes sit behind one address.
"""
import logging
import time
from typing import Optional

from limits import parse
from limits.storage import MemoryStorage, Storage
from limits.strategies import MovingWindowRateLimiter

from orderdesk.core.config import ORDER_RATE_LIMIT
from orderdesk.core.errors import RateLimited

log = logging.getLogger(__name__)

ORDER_CREATE_SCOPE = "order_create"


class OrderRateLimiter:

    def __init__(self, limit: str = ORDER_RATE_LIMIT, storage: Optional[Storage] = None):
        self.limit = parse(limit)
        self._limiter = MovingWindowRateLimiter(storage or MemoryStorage())

    def retry_after(self, ip: str) -> int:
        stats = self._limiter.get_window_stats(self.limit, ORDER_CREATE_SCOPE, ip)
        return max(1, int(stats.reset_time - time.time()) + 1)

    def ensure_allowed(self, ip: str):
        """
        Counts one order attempt for ``ip``.

        Raises:
            RateLimited: When ``ip`` is over the limit; the attempt is not counted.
        """
        if self._limiter.hit(self.limit, ORDER_CREATE_SCOPE, ip):
            return
        retry_after = self.retry_after(ip)
        log.warning(f"Order creation throttled for {ip} ({self.limit}).")
        raise RateLimited(
            "Too many order requests, please try again later.",
            {"retry_after_seconds": retry_after},
        )
