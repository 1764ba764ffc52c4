"""
Job lifecycle controller.

Owns every status transition of a job record:

    pending -> processing -> completed | failed

Submission writes the pending record and only then enqueues the work item,
so a worker can always find the record it was sent. Processing is driven by
an at-least-once queue, so process() may run several times for the same job,
possibly at the same moment. Two conditional updates keep that safe:

* the claim (-> processing) only matches pending or processing records that
  are still within retention, so a redelivered message for a finished or
  expired job is dropped instead of reopening it;
* terminal writes only match processing records, so the first attempt to
  finish wins and a slower duplicate can never overwrite or mix into it.

Status reads of completed jobs go through ensure_fresh_link(), which renews
the presigned download link when it is missing or about to expire.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from config import (
    ACCESS_LINK_TTL_SECONDS,
    JOB_RETENTION_SECONDS,
    LINK_REFRESH_MARGIN_SECONDS,
    PROCESSING_DEADLINE_SECONDS,
)
from exceptions import DeadlineExceeded, InfrastructureError, NotFoundError, ValidationError
from models import Job, JobStatus
from services import detect_image_format, sanitize_metadata
from store import utcnow

PROCESSING_MESSAGE = "Image generation in progress"


class JobLifecycleController:
    """Creates jobs, runs the scrape -> synthesize -> store pipeline and serves status."""

    def __init__(
        self,
        store,
        queue=None,
        object_store=None,
        scraper=None,
        synthesizer=None,
        prompt_builder=None,
        clock: Callable[[], datetime] = utcnow,
        deadline_seconds: int = PROCESSING_DEADLINE_SECONDS,
        link_ttl_seconds: int = ACCESS_LINK_TTL_SECONDS,
        refresh_margin_seconds: int = LINK_REFRESH_MARGIN_SECONDS,
        retention_seconds: int = JOB_RETENTION_SECONDS,
    ):
        self.store = store
        self.queue = queue
        self.object_store = object_store
        self.scraper = scraper
        self.synthesizer = synthesizer
        self.prompt_builder = prompt_builder
        self.clock = clock
        self.deadline_seconds = deadline_seconds
        self.link_ttl = timedelta(seconds=link_ttl_seconds)
        self.refresh_margin = timedelta(seconds=refresh_margin_seconds)
        self.retention = timedelta(seconds=retention_seconds)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def create(self, product_url) -> str:
        """
        Create a pending job for product_url and enqueue it. Returns the job id.

        If the enqueue fails after the record was written, the job stays
        pending until its retention deadline; the error is re-raised.
        """
        if not isinstance(product_url, str) or not product_url.strip():
            raise ValidationError("Missing productUrl field")
        product_url = product_url.strip()

        job_id = str(uuid.uuid4())
        now = self.clock()
        self.store.insert(Job(
            job_id=job_id,
            product_url=product_url,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
            retention_deadline=now + self.retention,
        ))

        try:
            self.queue.send(job_id, product_url)
        except InfrastructureError:
            logging.error(f"❌ Job {job_id} was recorded but could not be enqueued; it will stay pending")
            raise

        logging.info(f"✨ Job {job_id} submitted for {product_url}")
        return job_id

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, job_id: str, product_url: str) -> Optional[str]:
        """
        Run the pipeline for one delivered work item.

        Returns the job's status afterwards, or None when no record exists.
        Every failure inside the pipeline ends in a failed record. Only an
        InfrastructureError from the record store itself escapes, so that the
        queue redelivers the message.
        """
        started = self.clock()
        if not self.store.update_if_status(
            job_id, (JobStatus.PENDING, JobStatus.PROCESSING), status=JobStatus.PROCESSING
        ):
            return self._skip_delivery(job_id)

        logging.info(f"📝 Worker processing job {job_id} for {product_url}")
        deadline = started + timedelta(seconds=self.deadline_seconds)

        try:
            result = self._run_pipeline(job_id, product_url, deadline)
            if result is None:
                logging.warning(f"⚠️ Job {job_id} was finished by another attempt; skipping upload")
                return self._current_status(job_id)
            if self._finish(job_id, JobStatus.COMPLETED, result):
                logging.info(f"✅ Job {job_id} completed: {result['artifact_key']}")
                return JobStatus.COMPLETED
            return self._current_status(job_id)
        except Exception as e:
            error = self._describe_failure(e, deadline)
            logging.exception(f"❌ Job {job_id} failed: {error}")

        if self._finish(job_id, JobStatus.FAILED, {"error_message": error, "failed_at": self.clock()}):
            return JobStatus.FAILED
        return self._current_status(job_id)

    def _run_pipeline(self, job_id: str, product_url: str, deadline: datetime) -> Optional[dict]:
        """Completion fields for the job, or None if another attempt finished it first."""
        product = self.scraper.scrape(product_url)
        self._check_deadline(deadline)

        prompt = self.prompt_builder.build(product)
        image = self.synthesizer.generate(prompt.text, timeout=self._remaining(deadline))
        self._check_deadline(deadline)

        status = self._current_status(job_id)
        if status is None or status in JobStatus.TERMINAL:
            return None

        extension, content_type = detect_image_format(image)
        artifact_key = f"{job_id}.{extension}"
        self.object_store.put(
            artifact_key,
            image,
            content_type,
            metadata={
                "productname": sanitize_metadata(product.product_name),
                "price": sanitize_metadata(product.price),
                "producturl": sanitize_metadata(product_url),
            },
        )

        now = self.clock()
        access_link = self.object_store.generate_access_link(
            artifact_key, int(self.link_ttl.total_seconds())
        )
        return {
            "artifact_key": artifact_key,
            "content_type": content_type,
            "completed_at": now,
            "access_link": access_link,
            "access_link_expires_at": now + self.link_ttl,
            "product_name": product.product_name or "",
            "price": product.price or "",
            "offer": product.offer or "",
            "overlay_text": prompt.overlay_text,
        }

    def _finish(self, job_id: str, status: str, fields: dict) -> bool:
        """Write a terminal state in one update, only if no other attempt got there first."""
        written = self.store.update_if_status(job_id, (JobStatus.PROCESSING,), status=status, **fields)
        if not written:
            logging.warning(f"⚠️ Job {job_id} was finished by another attempt; discarding this {status} result")
        return written

    def _skip_delivery(self, job_id: str) -> Optional[str]:
        job = self.store.get(job_id)
        if job is None:
            logging.warning(f"⚠️ Job {job_id} not found (never created or expired); dropping work item")
            return None
        logging.warning(f"⚠️ Job {job_id} is already {job.status}; ignoring duplicate delivery")
        return job.status

    def _current_status(self, job_id: str) -> Optional[str]:
        job = self.store.get(job_id)
        return job.status if job else None

    def _remaining(self, deadline: datetime) -> float:
        return max((deadline - self.clock()).total_seconds(), 0.0)

    def _check_deadline(self, deadline: datetime) -> None:
        if self.clock() >= deadline:
            raise DeadlineExceeded(self._timeout_message())

    def _timeout_message(self) -> str:
        return f"Job timed out after {self.deadline_seconds} seconds"

    def _describe_failure(self, exc: Exception, deadline: datetime) -> str:
        if isinstance(exc, DeadlineExceeded) or self.clock() >= deadline:
            return self._timeout_message()
        return str(exc) or type(exc).__name__

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self, job_id: str) -> dict:
        """Current view of a job, shaped by its status. Renews the download link if needed."""
        job = self.store.get(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")

        response = {
            "job_id": job.job_id,
            "status": job.status,
            "created_at": job.created_at,
        }

        if job.status == JobStatus.COMPLETED:
            access_link, expires_at = self.ensure_fresh_link(job)
            response.update(
                image_url=access_link,
                url_expires_at=expires_at,
                content_type=job.content_type,
                completed_at=job.completed_at,
                file_name=job.artifact_key,
                product_name=job.product_name,
                price=job.price,
                offer=job.offer,
                overlay_text=job.overlay_text,
            )
        elif job.status == JobStatus.FAILED:
            response.update(error=job.error_message, failed_at=job.failed_at)
        elif job.status == JobStatus.PROCESSING:
            response["message"] = PROCESSING_MESSAGE

        return response

    def ensure_fresh_link(self, job: Job) -> Tuple[Optional[str], Optional[datetime]]:
        """
        Return a download link for a completed job that stays valid for at
        least the refresh margin.

        A stored link that is still good is returned as is, without touching
        the object store or the record. Otherwise a new link is presigned and
        saved. Concurrent readers may each renew; the last write is kept.
        """
        now = self.clock()
        expires_at = job.access_link_expires_at
        if job.access_link and expires_at is not None and expires_at >= now + self.refresh_margin:
            return job.access_link, expires_at

        if not job.artifact_key:
            logging.warning(f"⚠️ Completed job {job.job_id} has no artifact key; returning stored link")
            return job.access_link, expires_at

        access_link = self.object_store.generate_access_link(
            job.artifact_key, int(self.link_ttl.total_seconds())
        )
        expires_at = now + self.link_ttl
        self.store.update_if_status(
            job.job_id,
            (JobStatus.COMPLETED,),
            access_link=access_link,
            access_link_expires_at=expires_at,
        )
        logging.info(f"🔗 Renewed access link for job {job.job_id}")

        job.access_link = access_link
        job.access_link_expires_at = expires_at
        return access_link, expires_at
