# mypy: ignore-errors
# tests/services/test_rate_limit.py
"""Tests for the keyed expiring request counters."""

import pytest
import redis

from agora.core.errors import RateLimitedError
from agora.core.settings import settings
from agora.services.rate_limit import _COUNTER_CACHE, RateLimitService


def test_local_counter_rejects_request_over_limit() -> None:
    service = RateLimitService(use_redis=False)
    assert service.hit("vote", "1", limit=2, window_seconds=60) == 1
    assert service.hit("vote", "1", limit=2, window_seconds=60) == 2

    with pytest.raises(RateLimitedError) as exc_info:
        service.hit("vote", "1", limit=2, window_seconds=60)
    assert 1 <= exc_info.value.retry_after <= 60
    assert exc_info.value.to_payload()["retryAfter"] == exc_info.value.retry_after


def test_keys_are_independent() -> None:
    service = RateLimitService(use_redis=False)
    service.hit("vote", "1", limit=1, window_seconds=60)
    assert service.hit("vote", "2", limit=1, window_seconds=60) == 1
    assert service.hit("login", "1", limit=1, window_seconds=60) == 1


def test_reset_forgets_counter() -> None:
    service = RateLimitService(use_redis=False)
    service.hit("login", "10.0.0.1", limit=1, window_seconds=60)
    service.reset("login", "10.0.0.1")
    assert service.hit("login", "10.0.0.1", limit=1, window_seconds=60) == 1


def test_window_expiry(mocker) -> None:
    clock = mocker.patch("agora.services.rate_limit.time.time", return_value=1_000)
    service = RateLimitService(use_redis=False)
    service.hit("vote", "7", limit=1, window_seconds=30)

    clock.return_value = 1_031
    assert service.hit("vote", "7", limit=1, window_seconds=30) == 1


def test_redis_counters_are_used(mocker) -> None:
    service = RateLimitService(use_redis=False)
    fake = mocker.MagicMock()
    fake.pipeline.return_value.execute.return_value = [3, True, 42]
    service._redis = fake

    with pytest.raises(RateLimitedError) as exc_info:
        service.hit("vote", "1", limit=2, window_seconds=60)
    assert exc_info.value.retry_after == 42
    fake.pipeline.return_value.incr.assert_called_once_with("rl:vote:1")
    fake.pipeline.return_value.expire.assert_called_once_with("rl:vote:1", 60, nx=True)


def test_falls_back_to_memory_when_redis_is_down(mocker) -> None:
    mocker.patch("agora.services.rate_limit.time.time", return_value=5_000)
    service = RateLimitService(use_redis=False)
    fake = mocker.MagicMock()
    pipeline = fake.pipeline.return_value
    pipeline.execute.side_effect = redis.ConnectionError("connection refused")
    service._redis = fake

    assert service.hit("vote", "1", limit=5, window_seconds=60) == 1
    # Within the cooldown Redis is not contacted again.
    assert service.hit("vote", "1", limit=5, window_seconds=60) == 2
    assert pipeline.execute.call_count == 1


def test_redis_is_retried_after_cooldown(mocker, monkeypatch) -> None:
    monkeypatch.setattr(settings, "redis_retry_seconds", 30)
    clock = mocker.patch("agora.services.rate_limit.time.time", return_value=5_000)
    service = RateLimitService(use_redis=False)
    fake = mocker.MagicMock()
    pipeline = fake.pipeline.return_value
    pipeline.execute.side_effect = [redis.ConnectionError("connection refused"), [4, True, 50]]
    service._redis = fake

    assert service.hit("vote", "1", limit=5, window_seconds=60) == 1

    clock.return_value = 5_031
    assert service.hit("vote", "1", limit=5, window_seconds=60) == 4
    assert pipeline.execute.call_count == 2


def test_expired_local_counters_are_swept(mocker) -> None:
    clock = mocker.patch("agora.services.rate_limit.time.time", return_value=10_000)
    service = RateLimitService(use_redis=False)
    for key in ("a", "b", "c"):
        service.hit("login", key, limit=5, window_seconds=10)
    assert len(_COUNTER_CACHE) == 3

    clock.return_value = 10_000 + 120
    service.hit("login", "d", limit=5, window_seconds=10)
    assert list(_COUNTER_CACHE) == ["rl:login:d"]
