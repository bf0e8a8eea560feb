"""Celery application for background lead notifications."""

import sentry_sdk
from celery import Celery
from celery.signals import setup_logging
from kombu import Queue
from sentry_sdk.integrations.celery import CeleryIntegration

from app.core.config import settings
from app.utils.logger import configure_logging, get_logger

NOTIFICATIONS_QUEUE = "notifications"


@setup_logging.connect
def setup_celery_logging(**kwargs):
    """Route worker logging through structlog instead of Celery's handlers"""
    configure_logging()
    get_logger(__name__).info("celery_logging_configured", queue=NOTIFICATIONS_QUEUE)


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[CeleryIntegration()],
        environment=settings.APP_ENV,
        traces_sample_rate=0.1,
    )


celery_app = Celery(
    "forge_site",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.notification_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_queues=(Queue(NOTIFICATIONS_QUEUE),),
    task_default_queue=NOTIFICATIONS_QUEUE,
    # a notification is only acknowledged once the mail went out
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=60,
    task_soft_time_limit=45,
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    result_expires=24 * 3600,
)
