import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import CacheMiss, CacheWriteFailed, StoreUnavailable
from app.schemas.product import ProductResponse
from app.services.background import TaskScheduler
from app.services.product_cache import ProductCache
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)


class CatalogReader:
    """Cache-aside reads of the full product catalog.

    The cache is tried first. Any miss or cache failure falls back to the
    database, and the cache is then rebuilt in the background without
    delaying the response.
    """

    def __init__(
        self,
        cache: ProductCache,
        session_factory: async_sessionmaker[AsyncSession],
        scheduler: TaskScheduler,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.scheduler = scheduler

    async def fetch_all(self) -> List[ProductResponse]:
        try:
            return await self.cache.get_all()
        except CacheMiss as e:
            logger.info("Cache miss (%s), falling back to database", e)

        products = await self.load_from_store()
        self.scheduler.spawn(self._repopulate_quietly(products), name="catalog-repopulate")
        return products

    async def load_from_store(self) -> List[ProductResponse]:
        try:
            async with self.session_factory() as session:
                return await ProductService.list_products(session)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Error fetching products from database: %s", e)
            raise StoreUnavailable(f"failed to query products: {e}") from e

    async def repopulate(self, products: List[ProductResponse]) -> None:
        """Replace the cached catalog with ``products``. Raises CacheWriteFailed."""
        count = await self.cache.replace_all(products)
        logger.info("Cache populated with %d products", count)

    async def _repopulate_quietly(self, products: List[ProductResponse]) -> None:
        try:
            await self.repopulate(products)
        except CacheWriteFailed as e:
            logger.warning("Failed to populate cache after database fetch: %s", e)
