"""
Job persistence for background extractions.

A job moves pending -> processing -> (completed | failed). Terminal states are
written once and never overwritten; each job is keyed by its own id and no
job touches another's row.
"""

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.exceptions import InvalidJobTransition, JobNotFound
from models.base import SessionLocal, get_db_session
from models.job import JOB_TRANSITIONS, ExtractionJob, JobStatus

logger = logging.getLogger(__name__)


def check_transition(job_id: str, current: str, requested: str) -> None:
    if requested not in JOB_TRANSITIONS.get(current, ()):
        raise InvalidJobTransition(job_id, current, requested)


class JobStore(ABC):
    """Storage backend for ExtractionJob rows."""

    @abstractmethod
    async def create(self, url: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a pending job and return it."""

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Return the job as a dictionary, or None when unknown."""

    @abstractmethod
    async def update(self, job_id: str, status: str,
                     data: Optional[Dict[str, Any]] = None,
                     error: Optional[str] = None) -> Dict[str, Any]:
        """
        Move a job to ``status``, storing ``data`` and ``error``.

        Raises:
            JobNotFound: unknown job id
            InvalidJobTransition: the status change is not allowed
        """

    async def ensure(self, job_id: str, url: str) -> Dict[str, Any]:
        """Return the job, creating it as pending when it does not exist yet."""
        job = await self.get(job_id)
        if job is None:
            job = await self.create(url, job_id=job_id)
        return job


class InMemoryJobStore(JobStore):
    """Dictionary-backed store for tests and single-process development."""

    def __init__(self):
        self._jobs: Dict[str, Dict[str, Any]] = {}

    async def create(self, url: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        job_id = job_id or str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        self._jobs[job_id] = {
            "id": job_id,
            "url": url,
            "status": JobStatus.PENDING,
            "data": None,
            "error": None,
            "created_at": now,
            "updated_at": now,
        }
        return copy.deepcopy(self._jobs[job_id])

    async def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        job = self._jobs.get(job_id)
        return copy.deepcopy(job) if job is not None else None

    async def update(self, job_id: str, status: str,
                     data: Optional[Dict[str, Any]] = None,
                     error: Optional[str] = None) -> Dict[str, Any]:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        check_transition(job_id, job["status"], status)
        job.update({
            "status": status,
            "data": copy.deepcopy(data) if data is not None else job["data"],
            "error": error,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"Job {job_id} -> {status}")
        return copy.deepcopy(job)


class SQLAlchemyJobStore(JobStore):
    """Store backed by the ``scraped_results`` table."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    async def create(self, url: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        return await asyncio.to_thread(self._create, url, job_id)

    async def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._get, job_id)

    async def update(self, job_id: str, status: str,
                     data: Optional[Dict[str, Any]] = None,
                     error: Optional[str] = None) -> Dict[str, Any]:
        return await asyncio.to_thread(self._update, job_id, status, data, error)

    def _create(self, url: str, job_id: Optional[str]) -> Dict[str, Any]:
        with get_db_session(self.session_factory) as db:
            job = ExtractionJob(id=job_id or str(uuid.uuid4()), url=url, status=JobStatus.PENDING)
            db.add(job)
            db.flush()
            db.refresh(job)
            return job.to_dict()

    def _get(self, job_id: str) -> Optional[Dict[str, Any]]:
        with get_db_session(self.session_factory) as db:
            job = db.get(ExtractionJob, job_id)
            return job.to_dict() if job is not None else None

    def _update(self, job_id: str, status: str,
                data: Optional[Dict[str, Any]], error: Optional[str]) -> Dict[str, Any]:
        with get_db_session(self.session_factory) as db:
            # Row lock so two writers cannot both leave "processing"
            job = db.query(ExtractionJob).filter(ExtractionJob.id == job_id).with_for_update().first()
            if job is None:
                raise JobNotFound(job_id)
            check_transition(job_id, job.status, status)
            job.status = status
            if data is not None:
                job.data = data
            job.error = error
            db.flush()
            db.refresh(job)
            logger.info(f"Job {job_id} -> {status}")
            return job.to_dict()
