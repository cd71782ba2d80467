"""
Tests for the enhancement rate limiter.

Time is never actually waited on: `time.monotonic` is patched with a fake
clock where the tests need time to pass.
"""

import logging
from unittest.mock import patch

from app.services.rate_limiter import EnhancementRateLimiter, get_rate_limiter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_burst_capacity():
    """A full bucket allows `burst_capacity` calls back to back, then refuses."""
    clock = FakeClock()
    with patch("app.services.rate_limiter.time.monotonic", clock):
        limiter = EnhancementRateLimiter(max_requests_per_minute=60, burst_capacity=3)

        assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]
    logger.info("✓ Burst capacity enforced")


def test_tokens_refill_over_time():
    clock = FakeClock()
    with patch("app.services.rate_limiter.time.monotonic", clock):
        limiter = EnhancementRateLimiter(max_requests_per_minute=60, burst_capacity=1)
        assert limiter.try_acquire()
        assert not limiter.try_acquire()

        clock.advance(1.0)  # 60/min refills one token per second
        assert limiter.try_acquire()


def test_acquire_times_out_without_tokens():
    clock = FakeClock()

    def fake_sleep(seconds):
        clock.advance(seconds)

    with patch("app.services.rate_limiter.time.monotonic", clock), patch(
        "app.services.rate_limiter.time.sleep", fake_sleep
    ):
        limiter = EnhancementRateLimiter(max_requests_per_minute=1, burst_capacity=1)
        assert limiter.acquire(timeout=0.5)
        assert not limiter.acquire(timeout=0.5)


def test_429_blocks_with_exponential_backoff():
    clock = FakeClock()
    with patch("app.services.rate_limiter.time.monotonic", clock):
        limiter = EnhancementRateLimiter(max_requests_per_minute=600, burst_capacity=5)

        limiter.report_429()
        assert limiter.blocked_until == clock.now + 30.0
        assert not limiter.try_acquire()

        limiter.report_429()
        assert limiter.blocked_until == clock.now + 60.0

        clock.advance(61.0)
        assert limiter.try_acquire()
    logger.info("✓ 429 backoff doubles and then expires")


def test_backoff_is_capped():
    limiter = EnhancementRateLimiter()
    limiter.consecutive_429s = 10
    assert limiter._backoff_seconds() == 300.0


def test_success_decrements_429_counter():
    limiter = EnhancementRateLimiter()
    limiter.report_429()
    limiter.report_success()
    assert limiter.consecutive_429s == 0
    limiter.report_success()
    assert limiter.consecutive_429s == 0


def test_stats_snapshot():
    limiter = EnhancementRateLimiter(max_requests_per_minute=12, burst_capacity=2)
    limiter.try_acquire()
    stats = limiter.get_stats()

    assert stats["max_requests_per_minute"] == 12
    assert stats["max_tokens"] == 2.0
    assert stats["requests_last_minute"] == 1
    assert stats["is_rate_limited"] is False
    assert stats["blocked_until"] is None


def test_global_limiter_singleton():
    assert get_rate_limiter() is get_rate_limiter()


if __name__ == "__main__":
    import pytest

    raise SystemExit(pytest.main([__file__, "-v"]))
