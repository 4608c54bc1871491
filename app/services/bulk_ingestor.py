import logging
from typing import List

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import CacheWriteFailed, RowError, RowParseError, RowUpsertError, TransactionError
from app.schemas.ingest import IngestResult, RowOutcome
from app.schemas.product import ProductResponse, ProductRow
from app.services.csv_processor import CSVProcessor
from app.services.product_cache import ProductCache
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)


class BulkIngestor:
    """Applies a product CSV to the database and mirrors the result into Redis.

    All rows go through one transaction, strictly in file order. Every row
    runs in its own SAVEPOINT, so a row the database rejects is rolled back
    and skipped while the rest of the batch carries on. Rows that fail to
    parse never reach the database.

    The cache is written only after the transaction commits, using the rows
    as the database stored them. Cache failures are logged and counted, and
    never affect the committed batch.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], cache: ProductCache):
        self.session_factory = session_factory
        self.cache = cache

    async def ingest(self, file_content: bytes) -> IngestResult:
        # raises InvalidInput / EmptyInput before any transaction is opened
        records = CSVProcessor.read_records(file_content)
        result = IngestResult(total_rows=len(records))
        stored: List[ProductResponse] = []

        async with self.session_factory() as session:
            try:
                transaction = await session.begin()
                await session.connection()
            except (SQLAlchemyError, OSError) as e:
                raise TransactionError(f"failed to begin transaction: {e}") from e

            for item in CSVProcessor.iter_rows(records):
                if isinstance(item, RowParseError):
                    self._skip(result, item)
                    continue
                try:
                    product = await self._upsert_row(session, item)
                except RowUpsertError as e:
                    self._skip(result, e)
                    continue
                stored.append(product)
                result.record(RowOutcome(
                    row_number=item.row_number,
                    status="upserted",
                    product_id=product.id,
                ))

            try:
                await transaction.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                raise TransactionError(f"failed to commit transaction: {e}") from e

        for product in stored:
            try:
                await self.cache.put(product)
            except CacheWriteFailed as e:
                result.cache_failures += 1
                logger.warning("Error updating cache for product %s: %s", product.name, e)

        logger.info(
            "Processed %d rows: %d upserted, %d skipped, %d cache failures",
            result.total_rows, result.upserted, result.skipped, result.cache_failures,
        )
        return result

    @staticmethod
    async def _upsert_row(session: AsyncSession, row: ProductRow) -> ProductResponse:
        try:
            async with session.begin_nested():
                return await ProductService.upsert_product(session, row)
        except (SQLAlchemyError, LookupError, ValidationError) as e:
            raise RowUpsertError(row.row_number, f"'{row.name}': {e}") from e

    @staticmethod
    def _skip(result: IngestResult, error: RowError) -> None:
        logger.warning("Skipping row %d: %s", error.row_number, error.reason)
        result.record(RowOutcome(
            row_number=error.row_number,
            status="skipped",
            error_kind=error.kind,
            reason=error.reason,
        ))
