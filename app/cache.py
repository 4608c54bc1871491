import redis.asyncio as aioredis

from app.config import Settings
from app.services.product_cache import ProductCache


def create_redis(settings: Settings) -> aioredis.Redis:
    """Create the shared Redis client. Responses are decoded to ``str``."""
    return aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )


def create_product_cache(redis_client: aioredis.Redis, settings: Settings) -> ProductCache:
    return ProductCache(
        redis_client,
        ttl_seconds=settings.cache_ttl_seconds,
        index_key=settings.product_index_key,
        key_prefix=settings.product_key_prefix,
    )
