import json
import logging
from typing import Any, Optional
from redis.asyncio import Redis
from .core.config import settings

logger = logging.getLogger(__name__)

redis_pool: Optional[Redis] = None

async def init_redis_pool():
    """
    Connect to Redis using the host/port/password from settings.
    On failure the pool stays None and caching is skipped.
    """
    global redis_pool
    try:
        redis_pool = Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=0,
            password=settings.REDIS_PASSWORD or None,
            decode_responses=True,
        )
        await redis_pool.ping()
        logger.info(f"Redis connected ({settings.REDIS_HOST}:{settings.REDIS_PORT})")
    except Exception as e:
        logger.warning(f"Redis connection failed ({settings.REDIS_HOST}:{settings.REDIS_PORT}): {e}")
        redis_pool = None

async def close_redis_pool():
    global redis_pool
    if redis_pool:
        await redis_pool.close()
        redis_pool = None

async def get_redis_client() -> Optional[Redis]:
    return redis_pool

async def get_cache(key: str, client: Optional[Redis] = None) -> Any:
    current_client = client or redis_pool
    if current_client is None:
        return None
    data = await current_client.get(key)
    return json.loads(data) if data else None

async def set_cache(
        key: str,
        value: Any,
        expire: int = settings.CACHE_EXPIRE_SECONDS,
        client: Optional[Redis] = None
):
    current_client = client or redis_pool
    if current_client is None:
        return
    await current_client.set(key, json.dumps(value, default=str), ex=expire)

async def delete_pattern(pattern: str, client: Optional[Redis] = None) -> int:
    """
    Delete every key matching a glob pattern, e.g. "discovery:*".
    Returns the number of keys removed.
    """
    current_client = client or redis_pool
    if current_client is None:
        return 0
    deleted = 0
    async for key in current_client.scan_iter(match=pattern, count=500):
        deleted += await current_client.delete(key)
    return deleted
