from celery import Celery
from app.config import settings

celery_app = Celery(
    "product_catalog",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.import_task"],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # 1 hour max
)


if __name__ == "__main__":
    celery_app.start()
