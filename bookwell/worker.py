"""
Celery worker entry point
Delivers sign-in codes and appointment emails
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from bookwell.config.celery_config import celery_app
from bookwell.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    logger.info("Celery worker ready")
    logger.info(f"Registered tasks: {sorted(t for t in celery_app.tasks.keys() if t.startswith('bookwell.'))}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("Celery worker shutting down")


if __name__ == "__main__":
    celery_app.start([
        "worker",
        "--loglevel=info",
        "--queues=emails,bookwell",
        "--concurrency=4",
        "--max-tasks-per-child=1000"
    ])
