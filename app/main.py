import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.routes import products, upload
from app.cache import create_product_cache, create_redis
from app.config import settings
from app.database import create_engine, create_sessionmaker
from app.services.background import TaskScheduler
from app.services.bulk_ingestor import BulkIngestor
from app.services.catalog_reader import CatalogReader
from app.services.object_source import create_object_source

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Product Catalog API",
    description="Cached product catalog with bulk CSV ingestion",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# Include routers
app.include_router(products.router)
app.include_router(upload.router)


@app.get("/")
async def root():
    return {"message": "Product Catalog API", "docs": "/docs"}


@app.on_event("startup")
async def startup():
    """Build the shared clients and services once per process."""
    engine = create_engine(settings.database_url, echo=settings.debug)
    session_factory = create_sessionmaker(engine)
    redis_client = create_redis(settings)
    cache = create_product_cache(redis_client, settings)
    scheduler = TaskScheduler()

    app.state.engine = engine
    app.state.redis = redis_client
    app.state.scheduler = scheduler
    app.state.catalog_reader = CatalogReader(cache, session_factory, scheduler)
    app.state.bulk_ingestor = BulkIngestor(session_factory, cache)
    app.state.object_source = create_object_source(settings)
    logger.info("Product catalog services started")


@app.on_event("shutdown")
async def shutdown():
    """Cleanup on shutdown."""
    # Cancel any cache repopulation still in flight
    scheduler = getattr(app.state, 'scheduler', None)
    if scheduler:
        await scheduler.shutdown()

    redis_client = getattr(app.state, 'redis', None)
    if redis_client:
        await redis_client.aclose()

    engine = getattr(app.state, 'engine', None)
    if engine:
        await engine.dispose()
