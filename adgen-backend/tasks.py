# tasks.py

import logging

from celery import Celery
from celery.schedules import crontab
from kombu.exceptions import KombuError

from config import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    MAX_DELIVERY_ATTEMPTS,
    PROCESSING_DEADLINE_SECONDS,
)
from exceptions import InfrastructureError

celery = Celery("adgen", broker=CELERY_BROKER_URL, backend=CELERY_RESULT_BACKEND)
celery.conf.update(
    # At-least-once: ack only after the task ran, redeliver if the worker dies.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    broker_transport_options={"visibility_timeout": PROCESSING_DEADLINE_SECONDS + 120},
    beat_schedule={
        "purge-expired-jobs": {
            "task": "tasks.purge_expired_jobs_task",
            "schedule": crontab(minute=0),
        },
    },
)
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


class CeleryWorkQueue:
    """Sends {job_id, product_url} work items to the processing task."""

    def send(self, job_id: str, product_url: str) -> None:
        try:
            process_job_task.apply_async(kwargs={"job_id": job_id, "product_url": product_url})
        except (KombuError, OSError) as e:
            raise InfrastructureError(f"Failed to enqueue job {job_id}: {e}") from e


@celery.task(
    bind=True,
    name="tasks.process_job_task",
    max_retries=MAX_DELIVERY_ATTEMPTS,
    default_retry_delay=10,
    soft_time_limit=PROCESSING_DEADLINE_SECONDS + 15,
    time_limit=PROCESSING_DEADLINE_SECONDS + 30,
)
def process_job_task(self, job_id: str, product_url: str):
    """
    Background task that runs one job through the lifecycle controller.
    Pipeline failures are recorded on the job; only a record store outage
    gets here, and the message is retried until the attempts run out.
    """
    from deps import get_worker_controller

    try:
        return get_worker_controller().process(job_id, product_url)
    except InfrastructureError as e:
        logging.error(f"❌ Job {job_id} could not be recorded (attempt {self.request.retries + 1}): {e}")
        raise self.retry(exc=e)


@celery.task(name="tasks.purge_expired_jobs_task")
def purge_expired_jobs_task():
    """Delete job records past their retention deadline."""
    from deps import get_job_store

    return get_job_store().purge_expired()
