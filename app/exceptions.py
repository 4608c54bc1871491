"""Errors raised by the catalog read path and the bulk ingestion pipeline.

Recoverable errors (cache misses, cache write failures, per-row errors) are
contained inside the component that raises them. Only the batch boundary,
store connectivity and input rejection errors reach callers.
"""
from typing import Optional


class CatalogError(Exception):
    """Base class for all product catalog errors."""


class CacheMiss(CatalogError):
    """The cache could not answer a read; the store must be consulted."""


class CacheWriteFailed(CatalogError):
    """A cache write did not go through. Logged, never retried."""


class RowError(CatalogError):
    """A single ingestion row could not be applied."""

    kind = "row"

    def __init__(self, row_number: int, reason: str):
        super().__init__(f"row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class RowParseError(RowError):
    kind = "parse"


class RowUpsertError(RowError):
    kind = "upsert"


class IngestFailed(CatalogError):
    """The ingestion batch as a whole failed and nothing was committed."""


class TransactionError(IngestFailed):
    """The batch transaction could not be opened or committed."""


class StoreUnavailable(CatalogError):
    """The products store could not be read."""


class InvalidInput(CatalogError):
    """The ingestion payload was rejected before processing."""


class EmptyInput(InvalidInput):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "CSV is empty or has only headers")


class SourceRetrievalError(InvalidInput):
    """The referenced object could not be fetched from storage."""
