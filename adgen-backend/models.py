# models.py

from datetime import timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.types import TypeDecorator
from database import Base


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends (SQLite) that drop tzinfo."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class JobStatus:
    """Job states. Edges only go pending -> processing -> completed | failed."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    TERMINAL = (COMPLETED, FAILED)


class Job(Base):
    """Job model for tracking ad image generation requests."""

    __tablename__ = "jobs"

    job_id = Column(String(36), primary_key=True, index=True)
    product_url = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=JobStatus.PENDING, index=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=True)
    retention_deadline = Column(UTCDateTime, nullable=False, index=True)

    # completed
    artifact_key = Column(String(64), nullable=True)
    content_type = Column(String(32), nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    access_link = Column(Text, nullable=True)
    access_link_expires_at = Column(UTCDateTime, nullable=True)
    product_name = Column(Text, nullable=True)
    price = Column(Text, nullable=True)
    offer = Column(Text, nullable=True)
    overlay_text = Column(Text, nullable=True)

    # failed
    error_message = Column(Text, nullable=True)
    failed_at = Column(UTCDateTime, nullable=True)

    def __repr__(self):
        return f"<Job {self.job_id} [{self.status}]>"
