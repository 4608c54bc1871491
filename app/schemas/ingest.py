from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class S3Bucket(BaseModel):
    name: str


class S3Object(BaseModel):
    key: str


class S3Entity(BaseModel):
    bucket: S3Bucket
    object: S3Object


class S3EventRecord(BaseModel):
    s3: S3Entity

    model_config = ConfigDict(extra="ignore")


class IngestEvent(BaseModel):
    """Ingestion trigger: an object storage event, or raw CSV text."""

    records: List[S3EventRecord] = Field(default_factory=list, alias="Records")
    csv_data: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RowOutcome(BaseModel):
    row_number: int
    status: Literal["upserted", "skipped"]
    product_id: Optional[str] = None
    error_kind: Optional[Literal["parse", "upsert"]] = None
    reason: Optional[str] = None


class IngestResult(BaseModel):
    total_rows: int = 0
    upserted: int = 0
    skipped: int = 0
    cache_failures: int = 0
    outcomes: List[RowOutcome] = Field(default_factory=list)

    def record(self, outcome: RowOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == "upserted":
            self.upserted += 1
        else:
            self.skipped += 1


class IngestTaskResponse(BaseModel):
    task_id: str
