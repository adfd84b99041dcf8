"""
Brute-force deterrence for order-adjacent logins.

State lives in process memory only: a restart forgets every lockout. That is
acceptable because the tracker slows attackers down rather than forming a hard
security boundary.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from orderdesk.core.config import LOGIN_BLOCK_DURATION_SECONDS, MAX_LOGIN_ATTEMPTS
from orderdesk.core.errors import LoginBlocked


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


@dataclass
class LoginAttemptRecord:
    count: int = 0
    blocked_until: float = 0.0
    last_failure: float = 0.0


class LoginAttemptTracker:
    """
    Counts failed logins per (email, ip) and locks the pair out after too many.

    A record is forgotten once its lockout has run out and no failure has been
    seen for ``block_seconds``; stale records are swept at most every
    ``prune_interval`` seconds so the map cannot grow with every sprayed email.
    """

    def __init__(
        self,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        block_seconds: float = LOGIN_BLOCK_DURATION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        prune_interval: float = 60.0,
    ):
        self.max_attempts = max_attempts
        self.block_seconds = block_seconds
        self.prune_interval = prune_interval
        self._clock = clock
        self._records: Dict[str, LoginAttemptRecord] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    @staticmethod
    def key(email: Optional[str], ip: Optional[str]) -> str:
        return f"{normalize_email(email)}|{ip or 'unknown'}"

    @property
    def tracked_keys(self) -> int:
        return len(self._records)

    def _is_stale(self, record: LoginAttemptRecord, now: float) -> bool:
        return record.blocked_until <= now and now - record.last_failure >= self.block_seconds

    def _prune(self, now: float):
        # caller holds the lock
        if now - self._last_prune < self.prune_interval:
            return
        self._last_prune = now
        for key in [k for k, r in self._records.items() if self._is_stale(r, now)]:
            del self._records[key]

    def record_failure(self, email: Optional[str], ip: Optional[str]) -> LoginAttemptRecord:
        """Counts one failure; the threshold-th failure starts a lockout and resets the count."""
        key = self.key(email, ip)
        with self._lock:
            now = self._clock()
            self._prune(now)
            record = self._records.get(key)
            if record is None or self._is_stale(record, now):
                record = self._records[key] = LoginAttemptRecord()
            record.count += 1
            record.last_failure = now
            if record.count >= self.max_attempts:
                record.blocked_until = now + self.block_seconds
                record.count = 0
            return LoginAttemptRecord(record.count, record.blocked_until, record.last_failure)

    def is_blocked(self, email: Optional[str], ip: Optional[str]) -> bool:
        return self.remaining_block_seconds(email, ip) > 0

    def remaining_block_seconds(self, email: Optional[str], ip: Optional[str]) -> float:
        key = self.key(email, ip)
        with self._lock:
            now = self._clock()
            record = self._records.get(key)
            if record is None:
                return 0.0
            if self._is_stale(record, now):
                del self._records[key]
                return 0.0
            return max(0.0, record.blocked_until - now)

    def ensure_not_blocked(self, email: Optional[str], ip: Optional[str]):
        """
        Raises:
            LoginBlocked: While the pair is locked out; callers must not check the password.
        """
        remaining = self.remaining_block_seconds(email, ip)
        if remaining > 0:
            raise LoginBlocked(
                "Too many failed attempts. Please try again later.",
                {"retry_after_seconds": int(remaining) + 1},
            )

    def clear_on_success(self, email: Optional[str], ip: Optional[str]) -> bool:
        """Forgets the pair after a verified login. A running lockout is never lifted early."""
        key = self.key(email, ip)
        with self._lock:
            record = self._records.get(key)
            if record is not None and record.blocked_until > self._clock():
                return False
            self._records.pop(key, None)
            return True
