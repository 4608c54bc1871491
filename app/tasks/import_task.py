import asyncio
import logging
from typing import Dict, Optional

from app.cache import create_product_cache, create_redis
from app.config import Settings, settings as default_settings
from app.database import create_engine, create_sessionmaker
from app.schemas.ingest import IngestEvent
from app.services.bulk_ingestor import BulkIngestor
from app.services.object_source import create_object_source, resolve_payload
# Import celery_app - must be imported here for the decorator
from celery_app import celery_app

logger = logging.getLogger(__name__)


async def run_ingest_event(event: IngestEvent, settings: Optional[Settings] = None) -> Dict:
    """Resolve and ingest one event with clients owned by the current event loop."""
    settings = settings or default_settings
    engine = create_engine(settings.database_url)
    redis_client = create_redis(settings)
    try:
        content = await resolve_payload(event, create_object_source(settings))
        ingestor = BulkIngestor(
            create_sessionmaker(engine),
            create_product_cache(redis_client, settings),
        )
        result = await ingestor.ingest(content)
        return result.model_dump()
    finally:
        await redis_client.aclose()
        await engine.dispose()


@celery_app.task(name="app.tasks.import_task.ingest_event_task")
def ingest_event_task(event: Dict) -> Dict:
    """
    Celery task that ingests a storage event or inline CSV payload.
    Input errors and batch failures fail the task; nothing is retried.
    """
    parsed = IngestEvent.model_validate(event)
    result = asyncio.run(run_ingest_event(parsed))
    logger.info(
        "Import completed: %d upserted, %d skipped",
        result["upserted"], result["skipped"],
    )
    return result


__all__ = ['ingest_event_task', 'run_ingest_event']
