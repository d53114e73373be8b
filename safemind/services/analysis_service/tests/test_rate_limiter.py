"""Tests for FixedWindowRateLimiter."""
import pytest

from safemind.services.analysis_service.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestFixedWindowRateLimiter:

    def test_allows_up_to_limit(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60.0, clock=clock)

        decisions = [limiter.check("10.0.0.1") for _ in range(3)]

        assert all(d.allowed for d in decisions)

    def test_denies_over_limit_with_retry_after(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60.0, clock=clock)
        limiter.check("10.0.0.1")
        limiter.check("10.0.0.1")
        clock.now += 15.5

        decision = limiter.check("10.0.0.1")

        assert decision.allowed is False
        assert decision.retry_after_seconds == 45

    def test_clients_limited_independently(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60.0, clock=clock)

        assert limiter.check("10.0.0.1").allowed
        assert not limiter.check("10.0.0.1").allowed
        assert limiter.check("10.0.0.2").allowed

    def test_window_resets(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60.0, clock=clock)
        limiter.check("10.0.0.1")
        assert not limiter.check("10.0.0.1").allowed

        clock.now += 60.0

        assert limiter.check("10.0.0.1").allowed

    def test_retry_after_at_least_one_second(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60.0, clock=clock)
        limiter.check("10.0.0.1")
        clock.now += 59.9

        assert limiter.check("10.0.0.1").retry_after_seconds == 1

    def test_expired_windows_pruned(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=10.0, clock=clock)
        limiter.check("10.0.0.1")
        limiter.check("10.0.0.2")
        assert limiter.tracked_clients == 2

        clock.now += 11.0
        limiter.check("10.0.0.3")

        assert limiter.tracked_clients == 1

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_requests=0)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(window_seconds=0)
