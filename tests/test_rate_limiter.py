"""Redis-backed rate limiting and its memory fallback"""

from unittest.mock import MagicMock, patch

import pytest
import redis

from medsystem import rate_limiter

# Bound before the autouse no_redis fixture replaces the module attribute
from medsystem.rate_limiter import get_redis_client as connect_redis


@pytest.fixture
def redis_state(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setattr(rate_limiter, "redis_client", None)
    monkeypatch.setattr(rate_limiter, "redis_down_until", 0.0)


@pytest.fixture
def unreachable_redis():
    server = MagicMock()
    server.ping.side_effect = redis.ConnectionError("Connection refused")
    with patch.object(rate_limiter.redis, "Redis", return_value=server) as factory:
        yield factory


class TestRedisBackoff:
    def test_failed_ping_is_not_retried_within_backoff(self, redis_state, unreachable_redis):
        with pytest.raises(redis.ConnectionError):
            connect_redis()
        with pytest.raises(redis.ConnectionError, match="retry later"):
            connect_redis()

        assert unreachable_redis.call_count == 1
        assert unreachable_redis.return_value.ping.call_count == 1

    def test_retries_after_backoff(self, redis_state, unreachable_redis, monkeypatch):
        with pytest.raises(redis.ConnectionError):
            connect_redis()
        monkeypatch.setattr(rate_limiter, "redis_down_until", 0.0)

        with pytest.raises(redis.ConnectionError):
            connect_redis()

        assert unreachable_redis.return_value.ping.call_count == 2

    def test_connects_once(self, redis_state):
        server = MagicMock()
        with patch.object(rate_limiter.redis, "Redis", return_value=server) as factory:
            assert connect_redis() is server
            assert connect_redis() is server

        assert factory.call_count == 1
        server.ping.assert_called_once()

    def test_load_failure_marks_redis_down(self, redis_state):
        server = MagicMock()
        server.get.side_effect = redis.TimeoutError("Timeout reading from socket")

        allowed, count, _ = rate_limiter.check_rate_limit("landing:1.2.3.4", 5, 60, server)

        assert (allowed, count) == (True, 1)
        assert rate_limiter.redis_down_until > 0
        server.set.assert_not_called()


class TestMemoryWindow:
    def test_limit_then_blocked(self):
        results = [rate_limiter.check_rate_limit("k", 2, 60, None)[0] for _ in range(3)]

        assert results == [True, True, False]

    def test_forwarded_ip_first_hop(self):
        request = MagicMock()
        request.headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}

        assert rate_limiter.get_client_ip(request) == "203.0.113.9"
