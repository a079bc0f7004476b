"""
Controllers Module for PropertyScrape

This package contains the controllers that coordinate fetching, extraction,
scrubbing and persistence for a listing URL.
"""

from controllers.extraction_orchestrator import ExtractionOrchestrator, ExtractionState
from controllers.background_job_runner import BackgroundJobRunner

__all__ = ['ExtractionOrchestrator', 'ExtractionState', 'BackgroundJobRunner']
