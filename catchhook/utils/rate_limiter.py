"""
In-process fixed-window rate limiter for webhook ingestion.

Keyed per webhook identifier, so one endpoint's budget is shared by every
sender. A burst straddling a window boundary can get up to 2x the limit
through. Expired windows are reset lazily on the next hit; nothing sweeps.
"""
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# Default limits
DEFAULT_MAX_REQUESTS = 60  # requests per window per webhook
WINDOW_SECONDS = 60


@dataclass
class RateLimitRecord:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Counts requests per key in fixed windows.

    One instance is created per application and shared by all requests.
    admit() holds a lock across read-check-increment so two concurrent
    callers can never both take the last slot.

    max_keys > 0 caps the table size by evicting the least recently used
    key; 0 keeps every key ever seen.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = WINDOW_SECONDS,
        max_keys: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_keys < 0:
            raise ValueError("max_keys cannot be negative")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._records: OrderedDict[str, RateLimitRecord] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def limit_description(self) -> str:
        if self.window_seconds == 60:
            period = "minute"
        else:
            period = f"{self.window_seconds:g} seconds"
        return f"Rate limit exceeded. Max {self.max_requests} requests per {period}."

    def admit(self, key: str) -> bool:
        """Return True if the request counts toward the current window, False if refused."""
        with self._lock:
            now = self._clock()
            record = self._records.get(key)

            if record is None or now > record.reset_at:
                self._records[key] = RateLimitRecord(count=1, reset_at=now + self.window_seconds)
                self._touch(key)
                return True

            if self.max_keys:
                self._records.move_to_end(key)

            if record.count >= self.max_requests:
                logger.warning(
                    "Rate limit exceeded: key=%s count=%d limit=%d",
                    key, record.count, self.max_requests,
                )
                return False

            record.count += 1
            return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until the key's window resets (minimum 1)."""
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return 1
            return max(int(record.reset_at - self._clock()) + 1, 1)

    def snapshot(self, key: str) -> RateLimitRecord | None:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            return RateLimitRecord(count=record.count, reset_at=record.reset_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _touch(self, key: str) -> None:
        # Caller holds the lock
        if not self.max_keys:
            return
        self._records.move_to_end(key)
        while len(self._records) > self.max_keys:
            evicted, _ = self._records.popitem(last=False)
            logger.debug("Rate limiter evicted key=%s", evicted)
