from celery import Celery

from studyhub.core.config import settings

celery_app = Celery(
    "studyhub",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["studyhub.mycelery.worker"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_always_eager=settings.MODE == "test",
)
