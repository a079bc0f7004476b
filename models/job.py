"""
Job model for tracking background property extractions.
"""

import uuid

from sqlalchemy import Column, DateTime, JSON, String, Text
from sqlalchemy.sql import func

from models.base import Base


class JobStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    TERMINAL = (COMPLETED, FAILED)
    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)


# Allowed status changes; terminal states have no outgoing edges
JOB_TRANSITIONS = {
    JobStatus.PENDING: (JobStatus.PROCESSING,),
    JobStatus.PROCESSING: (JobStatus.COMPLETED, JobStatus.FAILED),
    JobStatus.COMPLETED: (),
    JobStatus.FAILED: (),
}


class ExtractionJob(Base):
    """One background extraction request and its outcome."""

    __tablename__ = "scraped_results"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    url = Column(String(2048), nullable=False)
    status = Column(String(20), nullable=False, default=JobStatus.PENDING)
    data = Column(JSON, nullable=True)  # PropertyRecord dict, or {"debugLog": [...]} on failure
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "data": self.data,
            "error": self.error,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ExtractionJob {self.id} ({self.status})>"
