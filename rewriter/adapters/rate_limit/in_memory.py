"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and state is lost on restart.
- Thread-safe: every read-modify-write of a record happens under one lock.
- Bounded: at most ``max_tracked_keys`` clients are tracked; expired records
  are dropped first, then the least recently seen client.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from rewriter.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class RateRecord:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window limiter whose window starts at a client's first request.

    A record resets once strictly more than ``window_seconds`` have passed
    since its window started. A blocked request does not count against the
    budget.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
        max_tracked_keys: int = 10000,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted units per window.
            window_seconds: Window length in seconds.
            clock: Time source returning UNIX time in seconds.
            max_tracked_keys: Upper bound on tracked client identifiers.

        Raises:
            ValueError: If any bound is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_tracked_keys < 1:
            raise ValueError("max_tracked_keys must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._max_tracked_keys = max_tracked_keys
        self._lock = threading.RLock()
        self._records: OrderedDict[str, RateRecord] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _is_expired(self, record: RateRecord, now: float) -> bool:
        return now - record.window_start > self._window_seconds

    def _evict_locked(self, now: float) -> None:
        """Make room for one more record."""
        expired = [key for key, record in self._records.items() if self._is_expired(record, now)]
        for key in expired:
            del self._records[key]

        evicted = 0
        while len(self._records) >= self._max_tracked_keys:
            self._records.popitem(last=False)
            evicted += 1

        if expired or evicted:
            logger.debug(
                "rate_limit.evicted",
                extra={"expired": len(expired), "lru_evicted": evicted},
            )

    def _current_record_locked(self, key: str, now: float) -> RateRecord:
        record = self._records.get(key)
        if record is None:
            if len(self._records) >= self._max_tracked_keys:
                self._evict_locked(now)
            record = RateRecord(window_start=now, count=0)
            self._records[key] = record
        elif self._is_expired(record, now):
            record.window_start = now
            record.count = 0
        self._records.move_to_end(key)
        return record

    def admit(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Client identifier.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with the decision and window metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            record = self._current_record_locked(key, now)
            reset_at = record.window_start + self._window_seconds

            if record.count + cost <= self._limit:
                record.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - record.count,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - record.count),
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )

    def count_for(self, key: str) -> int:
        """Return the admitted count in ``key``'s current window (0 if untracked)."""
        with self._lock:
            record = self._records.get(key)
            if record is None or self._is_expired(record, self._clock()):
                return 0
            return record.count

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
