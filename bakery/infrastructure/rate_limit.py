"""Fixed-window request counters.

Counters live in Redis when it is reachable so every instance shares the
same window; otherwise they are kept in process memory.
"""
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional

import redis
from cachetools import TTLCache

from bakery.core import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # seconds until the window resets


class RateLimiter:
    def __init__(self, redis_url: Optional[str] = None, maxsize: int = 10000):
        self.redis_client: Optional[redis.Redis] = None
        if redis_url:
            try:
                self.redis_client = redis.from_url(redis_url, decode_responses=True)
                self.redis_client.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, rate limiting per process: {e}")
                self.redis_client = None
        self._maxsize = maxsize
        self._windows: dict[int, TTLCache] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        if self.redis_client is not None:
            try:
                return self._hit_redis(key, limit, window_seconds)
            except redis.RedisError as e:
                logger.warning(f"Redis rate limit failed, using local counter: {e}")
        return self._hit_local(key, limit, window_seconds)

    def _hit_redis(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        window_start = int(time.time() // window_seconds)
        redis_key = f"ratelimit:{key}:{window_start}"
        pipe = self.redis_client.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, window_seconds)
        count, _ = pipe.execute()
        reset_at = (window_start + 1) * window_seconds
        return self._result(int(count), limit, reset_at - time.time())

    def _hit_local(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        with self._lock:
            cache = self._windows.get(window_seconds)
            if cache is None:
                cache = TTLCache(maxsize=self._maxsize, ttl=window_seconds)
                self._windows[window_seconds] = cache
            now = time.time()
            count, reset_at = cache.get(key, (0, now + window_seconds))
            if now >= reset_at:
                count, reset_at = 0, now + window_seconds
            count += 1
            cache[key] = (count, reset_at)
        return self._result(count, limit, reset_at - now)

    @staticmethod
    def _result(count: int, limit: int, seconds_left: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            retry_after=max(1, math.ceil(seconds_left)),
        )
