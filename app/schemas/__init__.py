from app.schemas.product import ProductResponse, ProductRow
from app.schemas.ingest import IngestEvent, IngestResult, IngestTaskResponse, RowOutcome

__all__ = [
    "ProductResponse",
    "ProductRow",
    "IngestEvent",
    "IngestResult",
    "IngestTaskResponse",
    "RowOutcome",
]
