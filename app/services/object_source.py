import asyncio
import logging
from urllib.parse import unquote_plus
from pathlib import Path
from typing import Any, Optional

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.exceptions import InvalidInput, SourceRetrievalError
from app.schemas.ingest import IngestEvent

logger = logging.getLogger(__name__)


class LocalObjectSource:
    """Reads uploaded objects from ``<base_dir>/<bucket>/<key>``."""

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir).resolve()

    async def fetch(self, bucket: str, key: str) -> bytes:
        path = (self.base_dir / bucket / key).resolve()
        if not path.is_relative_to(self.base_dir):
            raise SourceRetrievalError(f"object key escapes upload directory: {bucket}/{key}")
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except OSError as e:
            raise SourceRetrievalError(f"failed to read {bucket}/{key}: {e}") from e


class S3ObjectSource:
    """Reads objects from S3. boto3 is blocking, so calls run in a thread."""

    def __init__(self, client: Any):
        self.client = client

    async def fetch(self, bucket: str, key: str) -> bytes:
        def _get_object() -> bytes:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()

        try:
            return await asyncio.to_thread(_get_object)
        except (BotoCoreError, ClientError) as e:
            raise SourceRetrievalError(f"failed to get s3://{bucket}/{key}: {e}") from e


def create_object_source(settings: Settings):
    if settings.object_source == "s3":
        return S3ObjectSource(boto3.client("s3", region_name=settings.aws_region))
    return LocalObjectSource(settings.upload_dir)


async def resolve_payload(event: IngestEvent, source: Optional[Any]) -> bytes:
    """Turn an ingestion event into the raw CSV bytes it refers to.

    Object records win over inline ``csv_data``; only the first record is used.
    """
    if event.records:
        record = event.records[0]
        # event keys arrive URL-encoded
        bucket, key = record.s3.bucket.name, unquote_plus(record.s3.object.key)
        logger.info("Processing storage event for bucket: %s, key: %s", bucket, key)
        if source is None:
            raise SourceRetrievalError("no object source configured")
        return await source.fetch(bucket, key)
    if event.csv_data:
        logger.info("Processing direct CSV data payload")
        return event.csv_data.encode('utf-8')
    raise InvalidInput("no storage event record or direct CSV data found in the payload")
