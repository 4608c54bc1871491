import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from app.dependencies import get_bulk_ingestor, get_object_source
from app.exceptions import IngestFailed, InvalidInput
from app.schemas.ingest import IngestEvent, IngestResult, IngestTaskResponse
from app.services.bulk_ingestor import BulkIngestor
from app.services.object_source import resolve_payload
from app.tasks.import_task import ingest_event_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


async def _run_ingest(ingestor: BulkIngestor, content: bytes) -> IngestResult:
    try:
        return await ingestor.ingest(content)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IngestFailed as e:
        logger.error("Ingestion failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to import products")


@router.post("", response_model=IngestResult)
async def upload_csv(
    file: UploadFile = File(...),
    ingestor: BulkIngestor = Depends(get_bulk_ingestor)
):
    """Upload a product CSV and apply it to the catalog."""
    if not file.filename or not file.filename.endswith('.csv'):
        raise HTTPException(status_code=400, detail="File must be a CSV file")

    content = await file.read()
    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    return await _run_ingest(ingestor, content)


@router.post("/event", response_model=IngestResult)
async def ingest_event(
    event: IngestEvent,
    ingestor: BulkIngestor = Depends(get_bulk_ingestor),
    source=Depends(get_object_source)
):
    """Apply a storage event or inline CSV data to the catalog."""
    try:
        content = await resolve_payload(event, source)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _run_ingest(ingestor, content)


@router.post("/event/async", response_model=IngestTaskResponse, status_code=202)
async def enqueue_event(event: IngestEvent):
    """Hand an ingestion event to the Celery worker."""
    if not event.records and not event.csv_data:
        raise HTTPException(status_code=400, detail="No storage event record or CSV data provided")
    try:
        celery_result = ingest_event_task.delay(event.model_dump(by_alias=True))
    except Exception as e:
        logger.exception("Error starting Celery task")
        raise HTTPException(status_code=500, detail=f"Failed to start import: {str(e)}")
    logger.info("Started Celery task %s", celery_result.id)
    return IngestTaskResponse(task_id=celery_result.id)
