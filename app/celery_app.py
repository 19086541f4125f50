from celery import Celery
from celery.signals import setup_logging

from core.config import get_settings
from core.logging_setup import configure_logging

settings = get_settings()

celery_app = Celery(
    'danceverse',
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=['app.tasks'],
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    worker_prefetch_multiplier=1,
    task_acks_late=True,

    # Commission tasks must not be retried automatically
    task_max_retries=0,

    task_track_started=True,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()


if __name__ == '__main__':
    celery_app.start()
