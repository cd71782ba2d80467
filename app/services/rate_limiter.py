"""
Rate limiter for calls to the external layout generation service.

Every enhancement request takes a token from a shared bucket first. When
the bucket is empty the caller waits up to its timeout and then gives up,
which sends the request down the local heuristic path instead. A 429 from
the service blocks the bucket for a while (30s, doubling on each
consecutive 429, capped at 5 minutes).
"""

import logging
import os
import threading
import time
from collections import deque
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

BASE_BACKOFF_SECONDS = 30.0
MAX_BACKOFF_SECONDS = 300.0


class EnhancementRateLimiter:
    """
    Thread-safe token bucket shared by all enhancement calls.

    Enhancement calls run in worker threads (the generator hands the
    blocking HTTP call to `asyncio.to_thread`), so state is guarded by a
    lock rather than relying on the event loop.
    """

    def __init__(
        self,
        max_requests_per_minute: int = 15,
        burst_capacity: int = 5,
    ):
        """
        Args:
            max_requests_per_minute: Sustained refill rate of the bucket.
            burst_capacity: Number of calls allowed back to back from a full bucket.
        """
        self.max_requests_per_minute = max_requests_per_minute
        self.burst_capacity = burst_capacity

        self.tokens = float(burst_capacity)
        self.refill_rate = max_requests_per_minute / 60.0  # tokens per second
        self.last_refill = time.monotonic()

        self.request_times: deque = deque(maxlen=max(1, max_requests_per_minute))

        self.blocked_until: Optional[float] = None
        self.consecutive_429s = 0

        self.lock = threading.Lock()

        logger.info(
            f"Enhancement rate limiter initialized: "
            f"{max_requests_per_minute} req/min, burst: {burst_capacity}"
        )

    def _refill_tokens(self, now: float) -> None:
        elapsed = now - self.last_refill
        self.tokens = min(float(self.burst_capacity), self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def _is_blocked(self, now: float) -> bool:
        if self.blocked_until is None:
            return False
        if now < self.blocked_until:
            return True
        self.blocked_until = None
        logger.info("Enhancement backoff expired, resuming calls")
        return False

    def _backoff_seconds(self) -> float:
        return min(BASE_BACKOFF_SECONDS * 2 ** (self.consecutive_429s - 1), MAX_BACKOFF_SECONDS)

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        with self.lock:
            now = time.monotonic()
            if self._is_blocked(now):
                return False
            self._refill_tokens(now)
            if self.tokens < 1.0:
                return False
            self.tokens -= 1.0
            self.request_times.append(time.time())
            return True

    def acquire(self, timeout: float = 0.0) -> bool:
        """
        Wait up to `timeout` seconds for a token.

        Returns:
            True if a token was taken, False if the wait timed out.
        """
        deadline = time.monotonic() + timeout
        while True:
            if self.try_acquire():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Enhancement rate limiter: no token available, skipping call")
                return False
            time.sleep(min(0.1, remaining))

    def report_429(self) -> None:
        """Block all calls after the service answered 429 Too Many Requests."""
        with self.lock:
            self.consecutive_429s += 1
            backoff = self._backoff_seconds()
            self.blocked_until = time.monotonic() + backoff
            self.tokens = 0.0
            logger.error(
                f"Enhancement service returned 429 (consecutive: {self.consecutive_429s}). "
                f"Blocking calls for {backoff:.0f}s"
            )

    def report_success(self) -> None:
        with self.lock:
            if self.consecutive_429s > 0:
                self.consecutive_429s -= 1

    def get_stats(self) -> dict:
        """Snapshot of the limiter state, for diagnostics."""
        with self.lock:
            now = time.monotonic()
            cutoff = time.time() - 60.0
            blocked = self._is_blocked(now)
            return {
                "tokens_available": self.tokens,
                "max_tokens": float(self.burst_capacity),
                "requests_last_minute": sum(1 for t in self.request_times if t > cutoff),
                "max_requests_per_minute": self.max_requests_per_minute,
                "is_rate_limited": blocked,
                "consecutive_429s": self.consecutive_429s,
                "blocked_until": (
                    datetime.fromtimestamp(time.time() + (self.blocked_until - now)).isoformat()
                    if blocked
                    else None
                ),
            }


_rate_limiter: Optional[EnhancementRateLimiter] = None
_rate_limiter_lock = threading.Lock()


def get_rate_limiter() -> EnhancementRateLimiter:
    """
    Get or create the process-wide limiter.

    The sustained rate comes from `GEMINI_REQUESTS_PER_MINUTE` (default 15,
    the free-tier quota of the flash models).
    """
    global _rate_limiter

    if _rate_limiter is None:
        with _rate_limiter_lock:
            if _rate_limiter is None:
                _rate_limiter = EnhancementRateLimiter(
                    max_requests_per_minute=int(os.getenv("GEMINI_REQUESTS_PER_MINUTE", "15")),
                    burst_capacity=5,
                )

    return _rate_limiter
