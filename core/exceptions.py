"""
Exception taxonomy for the property extraction pipeline.

Strategy-level errors (fetch, agent, translation) are caught at the boundary
of the strategy that raised them and recorded in the request's debug log.
Only AllExtractionMethodsFailed is meant to reach callers.
"""

from typing import Any, Dict, List, Optional


class ExtractionError(Exception):
    """Base class for all extraction pipeline errors."""


class FetchError(ExtractionError):
    """Raised when a URL cannot be fetched (bad scheme, non-2xx, network failure)."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        if status is not None:
            message = f"Failed to fetch {url}: HTTP {status} ({reason})"
        else:
            message = f"Failed to fetch {url}: {reason}"
        super().__init__(message)


class UnsupportedDomain(ExtractionError):
    """Raised when no extraction schema is registered for a hostname."""

    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"No extraction schema registered for '{hostname}'")


class AgentError(ExtractionError):
    """Raised when the structured extraction service fails or returns an unsuccessful result."""


class AgentTimeout(AgentError):
    """Raised when the agent call exceeds its software-enforced timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Agent call timed out after {timeout} seconds")


class TranslationError(ExtractionError):
    """Raised by translation backends. Never fatal for an extraction."""


class AllExtractionMethodsFailed(ExtractionError):
    """Raised when every extraction strategy failed for a URL."""

    def __init__(self, message: str, debug_log: Optional[List[str]] = None,
                 details: Optional[str] = None):
        self.message = message
        self.debug_log = list(debug_log or [])
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing error body."""
        return {
            "error": self.message,
            "debugLog": self.debug_log,
            "details": self.details,
        }


class JobNotFound(ExtractionError):
    """Raised when a job id is not present in the job store."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' not found")


class InvalidJobTransition(ExtractionError):
    """Raised when a job status change is not allowed (e.g. rewriting a terminal state)."""

    def __init__(self, job_id: str, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job '{job_id}' cannot move from '{current}' to '{requested}'")
