"""
Per-user rate limiting for the sync API.

Sliding window over request timestamps, kept in process memory or, when
``REDIS_URL`` is configured, in a Redis sorted set shared by every worker.
"""

from typing import Optional, Dict, List, Union
from dataclasses import dataclass
from collections import defaultdict
import time

from spacesync.core.config import settings


@dataclass
class RateLimitRule:
    """At most ``max_requests`` per ``window_seconds``."""
    max_requests: int
    window_seconds: int


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Too many requests, retry in {retry_after}s")


class InMemoryRateLimiter:
    """Single-process limiter (development and tests)."""

    def __init__(self):
        self._hits: Dict[str, List[float]] = defaultdict(list)

    def _live_hits(self, key: str, rule: RateLimitRule, now: float) -> List[float]:
        cutoff = now - rule.window_seconds
        hits = [ts for ts in self._hits[key] if ts > cutoff]
        self._hits[key] = hits
        return hits

    def check_rate_limit(self, key: str, rule: RateLimitRule) -> None:
        """
        Count one request against ``key``.

        Raises:
            RateLimitExceeded: the window is full; the request is not counted
        """
        now = time.time()
        hits = self._live_hits(key, rule, now)

        if len(hits) >= rule.max_requests:
            # Room frees up when the oldest hit leaves the window
            raise RateLimitExceeded(max(int(hits[0] + rule.window_seconds - now), 1))

        hits.append(now)

    def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    def get_remaining_requests(self, key: str, rule: RateLimitRule) -> int:
        return max(0, rule.max_requests - len(self._live_hits(key, rule, time.time())))


class RedisRateLimiter:
    """Limiter shared across workers through Redis."""

    KEY_PREFIX = "spacesync:ratelimit:"

    def __init__(self, redis_client):
        self.redis = redis_client

    def check_rate_limit(self, key: str, rule: RateLimitRule) -> None:
        """Same contract as ``InMemoryRateLimiter.check_rate_limit``."""
        now = time.time()
        redis_key = self.KEY_PREFIX + key
        member = str(now)

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - rule.window_seconds)
        pipe.zcard(redis_key)
        pipe.zadd(redis_key, {member: now})
        pipe.expire(redis_key, rule.window_seconds)
        _, hits_before, _, _ = pipe.execute()

        if hits_before >= rule.max_requests:
            self.redis.zrem(redis_key, member)
            raise RateLimitExceeded(max(rule.window_seconds, 1))

    def reset(self, key: str) -> None:
        self.redis.delete(self.KEY_PREFIX + key)

    def get_remaining_requests(self, key: str, rule: RateLimitRule) -> int:
        redis_key = self.KEY_PREFIX + key
        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, time.time() - rule.window_seconds)
        pipe.zcard(redis_key)
        _, hits = pipe.execute()
        return max(0, rule.max_requests - hits)


# Looked up per request so the budget can be changed at runtime
DEFAULT_RATE_LIMITS = {
    "sync": RateLimitRule(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
    ),
}


_rate_limiter: Optional[Union[InMemoryRateLimiter, RedisRateLimiter]] = None


def get_rate_limiter() -> Union[InMemoryRateLimiter, RedisRateLimiter]:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = InMemoryRateLimiter()
    return _rate_limiter


def initialize_redis_rate_limiter(redis_client) -> None:
    """Switch to the Redis limiter; called from the app lifespan once Redis answers."""
    global _rate_limiter
    _rate_limiter = RedisRateLimiter(redis_client)
