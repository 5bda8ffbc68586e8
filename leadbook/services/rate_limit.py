import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol, Tuple

from fastapi import Depends

from leadbook.core.config import settings
from leadbook.core.errors import RateLimited
from leadbook.db.redis_client import get_redis

CREATE_LIMIT = (5, 60)   # creations per window (seconds) per user
UPDATE_LIMIT = (10, 60)  # updates per window (seconds) per user


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: float  # seconds until the window resets


class RateLimitStore(Protocol):
    async def hit(self, key: str, window: int) -> Tuple[int, float]:
        """Count one hit on `key`; return (count in window, seconds left)."""
        ...


class MemoryRateLimitStore:
    """
    Process-local fixed-window counters.

    Not shared between worker processes and lost on restart; use
    RedisRateLimitStore when the app runs with more than one process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}  # key -> (count, reset_at)

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._windows.items() if reset_at <= now]
        for key in expired:
            del self._windows[key]

    async def hit(self, key: str, window: int) -> Tuple[int, float]:
        now = self._clock()
        self._evict_expired(now)
        count, reset_at = self._windows.get(key, (0, now + window))
        count += 1
        self._windows[key] = (count, reset_at)
        return count, reset_at - now


class RedisRateLimitStore:
    """Fixed-window counters in Redis (INCR + EXPIRE), shared by every process."""

    def __init__(self, redis, prefix: str = "ratelimit:"):
        self.redis = redis
        self.prefix = prefix

    async def hit(self, key: str, window: int) -> Tuple[int, float]:
        redis_key = f"{self.prefix}{key}"
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, window, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        return int(count), float(ttl if ttl and ttl > 0 else window)


class RateLimiter:
    """
        Per-key request throttling with an injected counter store.

        Keys are built as "<action>:<user id>", e.g. "create-lead:<uuid>", so
        each user gets an independent budget per action.

        Usage:
        - `await limiter.check(key, limit, window)` → RateLimitResult
        - `await limiter.enforce(key, limit, window)` raises RateLimited when
          the caller is over the limit.
    """

    def __init__(self, store: RateLimitStore):
        self.store = store

    async def check(self, key: str, limit: int, window: int) -> RateLimitResult:
        count, reset_in = await self.store.hit(key, window)
        return RateLimitResult(
            allowed=count <= limit,
            remaining=max(0, limit - count),
            reset_in=reset_in,
        )

    async def enforce(self, key: str, limit: int, window: int) -> RateLimitResult:
        result = await self.check(key, limit, window)
        if not result.allowed:
            raise RateLimited(
                "Too many requests. Please try again later.",
                retry_after=max(1, math.ceil(result.reset_in)),
            )
        return result


_memory_limiter = RateLimiter(MemoryRateLimitStore())


# Dependency for FastAPI
async def get_rate_limiter(redis=Depends(get_redis)) -> RateLimiter:
    if settings.RATE_LIMIT_BACKEND == "redis":
        return RateLimiter(RedisRateLimitStore(redis))
    return _memory_limiter
