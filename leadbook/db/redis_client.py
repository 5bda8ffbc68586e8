# db/redis_client.py
import redis.asyncio as redis

from leadbook.core.config import settings

# Shared client, only contacted when RATE_LIMIT_BACKEND=redis
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


async def get_redis():
    """
    Dependency handing out the shared rate-limit Redis client.
    Closed once, on app shutdown (see close_redis).
    """
    yield redis_client


async def close_redis() -> None:
    await redis_client.aclose()
