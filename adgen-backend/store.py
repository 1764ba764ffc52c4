"""
Job record store backed by SQLAlchemy.

Every write is a single UPDATE statement against one row, so a caller never
observes a half-applied update. Nothing here locks across calls; the
conditional variant is the only conflict check available to callers.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from exceptions import InfrastructureError
from models import Job


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    """Point get / insert / partial update of job records, keyed by job_id."""

    def __init__(self, session_factory, clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    def insert(self, job: Job) -> None:
        db = self.session_factory()
        try:
            db.add(job)
            db.commit()
            db.refresh(job)
            db.expunge(job)
        except SQLAlchemyError as e:
            db.rollback()
            raise InfrastructureError(f"Could not create job record: {e}") from e
        finally:
            db.close()

    def get(self, job_id: str) -> Optional[Job]:
        """Return the job, or None if it never existed or is past its retention deadline."""
        db = self.session_factory()
        try:
            job = db.query(Job).filter(Job.job_id == job_id).first()
            if job is None:
                return None
            db.expunge(job)
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Could not read job record: {e}") from e
        finally:
            db.close()

        if job.retention_deadline is not None and job.retention_deadline <= self.clock():
            return None
        return job

    def update(self, job_id: str, **fields) -> bool:
        return self._update(job_id, None, fields)

    def update_if_status(self, job_id: str, allowed_statuses: Iterable[str], **fields) -> bool:
        """
        Apply the update only while the record's status is one of allowed_statuses
        and the record is still within its retention deadline.
        """
        return self._update(job_id, tuple(allowed_statuses), fields)

    def _update(self, job_id, allowed_statuses, fields) -> bool:
        values = dict(fields)
        values["updated_at"] = self.clock()

        db = self.session_factory()
        try:
            query = db.query(Job).filter(Job.job_id == job_id)
            if allowed_statuses is not None:
                query = query.filter(
                    Job.status.in_(allowed_statuses),
                    Job.retention_deadline > values["updated_at"],
                )
            matched = query.update(values, synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise InfrastructureError(f"Could not update job {job_id}: {e}") from e
        finally:
            db.close()
        return matched > 0

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        db = self.session_factory()
        try:
            deleted = (
                db.query(Job)
                .filter(Job.retention_deadline <= now)
                .delete(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise InfrastructureError(f"Could not purge expired jobs: {e}") from e
        finally:
            db.close()

        if deleted:
            logging.info(f"🧹 Purged {deleted} job record(s) past their retention deadline")
        return deleted
