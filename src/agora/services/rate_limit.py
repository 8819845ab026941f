"""Keyed expiring request counters for throttling sensitive actions."""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Final

import redis

from agora.core.errors import RateLimitedError
from agora.core.settings import settings

logger = logging.getLogger(__name__)

# Expired in-process counters are swept at most this often.
_SWEEP_INTERVAL_SECONDS: Final = 60


class RateLimitService:
    """Fixed-window counters shared across instances through Redis.

    Each ``(scope, key)`` pair owns a counter that expires ``window_seconds``
    after its first hit. Redis keeps the counters correct across server
    processes. When a Redis call fails the service counts in process for
    ``REDIS_RETRY_SECONDS`` and then tries Redis again.
    """

    def __init__(self, redis_url: str | None = None, *, use_redis: bool = True) -> None:
        self._redis: redis.Redis | None = None
        self._redis_down_until = 0.0
        if use_redis:
            try:
                self._redis = redis.from_url(redis_url or settings.redis_url)
            except (ValueError, redis.RedisError):  # pragma: no cover - bad URL
                logger.warning("Invalid REDIS_URL, using in-process rate-limit counters")

    def hit(self, scope: str, key: str, *, limit: int, window_seconds: int) -> int:
        """Count one request and return the number seen in the current window.

        Raises:
            RateLimitedError: If the request pushes the counter past ``limit``.
        """
        if limit <= 0 or window_seconds <= 0:
            return 0
        counter_key = f"rl:{scope}:{key}"
        count, ttl = self._increment(counter_key, window_seconds)
        if count > limit:
            logger.warning("Rate limit exceeded for %s (%d/%d)", counter_key, count, limit)
            raise RateLimitedError(retry_after=max(ttl, 1))
        return count

    def reset(self, scope: str, key: str) -> None:
        """Forget the counter for ``(scope, key)``."""
        counter_key = f"rl:{scope}:{key}"
        client = self._available_redis()
        if client is not None:
            try:
                client.delete(counter_key)
            except redis.RedisError:
                self._mark_redis_down()
        with _CACHE_LOCK:
            _COUNTER_CACHE.pop(counter_key, None)

    def _available_redis(self) -> redis.Redis | None:
        if self._redis is None or time.time() < self._redis_down_until:
            return None
        if self._redis_down_until:
            logger.info("Retrying Redis for rate-limit counters")
            self._redis_down_until = 0.0
        return self._redis

    def _mark_redis_down(self) -> None:
        logger.warning(
            "Redis unavailable, using in-process rate-limit counters for %ds",
            settings.redis_retry_seconds,
        )
        self._redis_down_until = time.time() + settings.redis_retry_seconds

    def _increment(self, counter_key: str, window_seconds: int) -> tuple[int, int]:
        client = self._available_redis()
        if client is not None:
            try:
                pipe = client.pipeline()
                pipe.incr(counter_key)
                pipe.expire(counter_key, int(window_seconds), nx=True)
                pipe.ttl(counter_key)
                count, _, ttl = pipe.execute()
                return int(count), int(ttl)
            except redis.RedisError:
                self._mark_redis_down()

        now = int(time.time())
        with _CACHE_LOCK:
            _sweep_expired(now)
            entry = _COUNTER_CACHE.get(counter_key)
            if entry is None or entry[1] <= now:
                entry = [0, now + int(window_seconds)]
                _COUNTER_CACHE[counter_key] = entry
            entry[0] += 1
            return entry[0], entry[1] - now


_COUNTER_CACHE: dict[str, list[int]] = {}
_CACHE_LOCK: Final[Lock] = Lock()
_last_sweep = 0
_SERVICE: RateLimitService | None = None


def _sweep_expired(now: int) -> None:
    """Drop expired counters; callers hold ``_CACHE_LOCK``."""
    global _last_sweep
    if now - _last_sweep < _SWEEP_INTERVAL_SECONDS:
        return
    _last_sweep = now
    for counter_key in [k for k, (_, expires) in _COUNTER_CACHE.items() if expires <= now]:
        del _COUNTER_CACHE[counter_key]


def clear_local_counters() -> None:
    """Drop every in-process counter (used between tests)."""
    global _last_sweep
    with _CACHE_LOCK:
        _COUNTER_CACHE.clear()
        _last_sweep = 0


def get_rate_limit_service() -> RateLimitService:
    """Return the shared rate limit service."""
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = RateLimitService()
    return _SERVICE
