"""Unit tests for the sliding-window rate limiter."""

from unittest.mock import Mock

import pytest
import redis

from backend.api.rate_limit import (
    RATE_LIMIT_MESSAGE,
    SlidingWindowRateLimiter,
    client_ip,
    rate_limit_body,
    rate_limit_headers,
    seconds_until,
    should_skip,
)

NOW = 1_700_000_000_000


def request_with(headers=None, host="10.0.0.9"):
    request = Mock()
    request.headers = headers or {}
    request.client = Mock(host=host) if host else None
    return request


class TestSlidingWindowRateLimiter:
    """Test suite for SlidingWindowRateLimiter.hit."""

    @pytest.fixture
    def limiter(self, fake_redis):
        return SlidingWindowRateLimiter(fake_redis, limit=2, window=60, name="api")

    def test_admits_up_to_limit(self, limiter):
        first = limiter.hit("1.2.3.4", now_ms=NOW)
        second = limiter.hit("1.2.3.4", now_ms=NOW + 100)

        assert first.success and second.success
        assert first.remaining == 1
        assert second.remaining == 0
        assert second.reset == NOW + 60_000

    def test_rejects_over_limit_without_consuming_window(self, limiter, fake_redis):
        limiter.hit("1.2.3.4", now_ms=NOW)
        limiter.hit("1.2.3.4", now_ms=NOW + 100)
        third = limiter.hit("1.2.3.4", now_ms=NOW + 200)

        assert third.success is False
        assert third.remaining == 0
        assert third.reset == NOW + 60_000
        assert fake_redis.zcard(limiter.key("1.2.3.4")) == 2

    def test_window_slides(self, limiter):
        limiter.hit("1.2.3.4", now_ms=NOW)
        limiter.hit("1.2.3.4", now_ms=NOW + 100)
        assert limiter.hit("1.2.3.4", now_ms=NOW + 200).success is False

        later = limiter.hit("1.2.3.4", now_ms=NOW + 60_001)
        assert later.success is True
        assert later.reset == NOW + 100 + 60_000

    def test_identifiers_and_names_are_independent(self, limiter, fake_redis):
        limiter.hit("1.2.3.4", now_ms=NOW)
        limiter.hit("1.2.3.4", now_ms=NOW)
        assert limiter.hit("5.6.7.8", now_ms=NOW).success is True

        pages = SlidingWindowRateLimiter(fake_redis, limit=1, window=60, name="pages")
        assert pages.hit("1.2.3.4", now_ms=NOW).success is True
        assert pages.key("x") == "ratelimit:pages:x"

    def test_store_errors_propagate(self, limiter, fake_redis):
        fake_redis.fail = True
        with pytest.raises(redis.RedisError):
            limiter.hit("1.2.3.4", now_ms=NOW)


class TestRateLimitHelpers:
    """Test suite for request identification and response helpers."""

    def test_client_ip_prefers_forwarded_for(self):
        request = request_with({"x-forwarded-for": " 203.0.113.7 , 10.0.0.1", "x-real-ip": "198.51.100.2"})
        assert client_ip(request) == "203.0.113.7"

    @pytest.mark.parametrize("header", ["x-real-ip", "cf-connecting-ip"])
    def test_client_ip_proxy_headers(self, header):
        assert client_ip(request_with({header: "198.51.100.2"})) == "198.51.100.2"

    def test_client_ip_socket_then_default(self):
        assert client_ip(request_with()) == "10.0.0.9"
        assert client_ip(request_with(host=None)) == "127.0.0.1"

    def test_should_skip(self):
        assert should_skip("/favicon.ico")
        assert should_skip("/images/new-user-section.png")
        assert not should_skip("/api/chat")

    def test_seconds_until_rounds_up(self):
        assert seconds_until(NOW + 1_500, now_ms=NOW) == 2
        assert seconds_until(NOW - 5_000, now_ms=NOW) == 0

    def test_headers_and_body_for_rejection(self, fake_redis):
        limiter = SlidingWindowRateLimiter(fake_redis, limit=1, window=60)
        limiter.hit("ip")
        rejected = limiter.hit("ip")

        headers = rate_limit_headers(rejected)
        assert headers["X-RateLimit-Limit"] == "1"
        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["X-RateLimit-Reset"] == str(rejected.reset)
        assert 0 < int(headers["Retry-After"]) <= 60

        body = rate_limit_body(rejected)
        assert body["error"] == "Rate limit exceeded"
        assert body["message"] == RATE_LIMIT_MESSAGE
        assert body["reset"] == rejected.reset
        assert body["retryAfter"] == body["timeRemaining"]

    def test_no_retry_after_when_admitted(self, fake_redis):
        admitted = SlidingWindowRateLimiter(fake_redis, limit=5, window=60).hit("ip")
        assert "Retry-After" not in rate_limit_headers(admitted)
