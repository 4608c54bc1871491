import logging
from typing import Iterable, List

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError

from app.exceptions import CacheMiss, CacheWriteFailed
from app.schemas.product import ProductResponse

logger = logging.getLogger(__name__)


class ProductCache:
    """Redis view of the catalog.

    Each product is stored as JSON under ``<prefix><id>``. The set stored at
    ``index_key`` lists every known product id, but individual keys can expire
    or be evicted on their own, so the set may name keys that are gone.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        ttl_seconds: int = 300,
        index_key: str = "all_product_ids",
        key_prefix: str = "product:",
    ):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.index_key = index_key
        self.key_prefix = key_prefix

    def product_key(self, product_id: str) -> str:
        return f"{self.key_prefix}{product_id}"

    async def get_all(self) -> List[ProductResponse]:
        """Rebuild the catalog from the cache. Raises CacheMiss if it can't."""
        try:
            product_ids = await self.redis.smembers(self.index_key)
        except RedisError as e:
            raise CacheMiss(f"failed to read {self.index_key}: {e}") from e
        if not product_ids:
            raise CacheMiss(f"{self.index_key} does not exist or is empty")

        keys = [self.product_key(product_id) for product_id in product_ids]
        try:
            entries = await self.redis.mget(keys)
        except RedisError as e:
            raise CacheMiss(f"failed to MGET products: {e}") from e

        products = []
        for key, entry in zip(keys, entries):
            if entry is None:
                # expired or evicted
                continue
            try:
                products.append(ProductResponse.model_validate_json(entry))
            except ValidationError as e:
                logger.warning("Discarding unreadable cache entry %s: %s", key, e)

        if not products:
            raise CacheMiss(
                f"all {len(product_ids)} indexed products were missing or invalid"
            )

        products.sort(key=lambda p: p.name)
        logger.info("Retrieved %d products from Redis cache", len(products))
        return products

    async def replace_all(self, products: Iterable[ProductResponse]) -> int:
        """Write every product with the TTL and rebuild the index in one MULTI/EXEC."""
        products = list(products)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                for product in products:
                    pipe.set(
                        self.product_key(product.id),
                        product.model_dump_json(),
                        ex=self.ttl_seconds,
                    )
                pipe.delete(self.index_key)
                if products:
                    pipe.sadd(self.index_key, *[product.id for product in products])
                await pipe.execute()
        except RedisError as e:
            raise CacheWriteFailed(f"cache population pipeline failed: {e}") from e
        return len(products)

    async def put(self, product: ProductResponse) -> None:
        """Store one product without expiry and add it to the index.

        If the product key can't be written its id is left out of the index.
        """
        key = self.product_key(product.id)
        try:
            await self.redis.set(key, product.model_dump_json())
        except RedisError as e:
            raise CacheWriteFailed(f"failed to set {key}: {e}") from e
        try:
            await self.redis.sadd(self.index_key, product.id)
        except RedisError as e:
            raise CacheWriteFailed(
                f"failed to add {product.id} to {self.index_key}: {e}"
            ) from e
