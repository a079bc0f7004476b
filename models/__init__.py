"""
Models package for PropertyScrape database entities.
"""

from models.base import Base, init_db, get_db_session
from models.job import ExtractionJob, JobStatus, JOB_TRANSITIONS

__all__ = [
    'Base',
    'init_db',
    'get_db_session',
    'ExtractionJob',
    'JobStatus',
    'JOB_TRANSITIONS',
]
