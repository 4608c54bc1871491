"""Tests for the Celery ingestion task."""

import pytest

from app.config import Settings
from app.database import Base, create_engine
from app.schemas.ingest import IngestEvent
from app.tasks import import_task
from tests.conftest import make_csv


class TestRunIngestEvent:

    @pytest.mark.asyncio
    async def test_ingests_inline_csv(self, tmp_path, redis_client, monkeypatch):
        database_url = f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"
        engine = create_engine(database_url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

        monkeypatch.setattr(import_task, "create_redis", lambda settings: redis_client)
        # the task closes its client; keep the shared fixture usable
        monkeypatch.setattr(redis_client, "aclose", lambda: _noop())

        csv_text = make_csv(["", "Widget", "", "9.99", "0"]).decode("utf-8")
        result = await import_task.run_ingest_event(
            IngestEvent(csv_data=csv_text),
            Settings(database_url=database_url, upload_dir=str(tmp_path)),
        )

        assert result["upserted"] == 1
        assert len(await redis_client.smembers("all_product_ids")) == 1


async def _noop():
    return None


class TestIngestEventTask:

    def test_task_validates_and_runs_event(self, monkeypatch):
        seen = {}

        async def fake_run(event, settings=None):
            seen["event"] = event
            return {"upserted": 1, "skipped": 0}

        monkeypatch.setattr(import_task, "run_ingest_event", fake_run)

        result = import_task.ingest_event_task({"csv_data": "id,name\n"})

        assert result == {"upserted": 1, "skipped": 0}
        assert seen["event"].csv_data == "id,name\n"
