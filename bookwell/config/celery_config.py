"""Celery application configuration"""
from celery import Celery

from bookwell.config.settings import get_settings


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    settings = get_settings()

    app = Celery(
        "bookwell",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["bookwell.tasks.email_tasks"],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        task_default_queue="bookwell",
        task_routes={
            "bookwell.tasks.email_tasks.*": {"queue": "emails"},
        },
        task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
        broker_connection_retry_on_startup=True,
    )

    return app


celery_app = create_celery_app()
