"""
Structured logging configuration for PropertyScrape.
Uses structlog for structured JSON logs in production and more readable logs in development.
"""

import logging
import sys
import time
import uuid
import structlog
from typing import Optional

import config

# Configure standard logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(message)s",
    stream=sys.stdout,
)

# Determine if we should use JSON format (in production) or pretty console output (in development)
USE_JSON_LOGS = config.LOG_FORMAT.lower() in ("json", "structured") or config.ENVIRONMENT == "production"

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        # Use JSON in production, pretty console output in development
        structlog.processors.JSONRenderer() if USE_JSON_LOGS else structlog.dev.ConsoleRenderer(colors=False),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

REQUEST_ID_HEADER = "X-Request-ID"


def bind_listing_context(url: str, job_id: Optional[str] = None) -> None:
    """Attach the listing URL (and job id) to every log line of the current request."""
    if job_id:
        structlog.contextvars.bind_contextvars(url=url, job_id=job_id)
    else:
        structlog.contextvars.bind_contextvars(url=url)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return structlog.contextvars.get_contextvars().get("request_id")


# API logging middleware
async def log_request_middleware(request, call_next):
    """
    Log each API call with its request id.

    The id is bound into structlog's context, so the orchestrator and job
    runner lines emitted while serving the request carry it too. Failed
    extractions (5xx) are logged as warnings with the elapsed time, which is
    the figure to compare against the agent and scrape timeouts.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or f"req-{uuid.uuid4().hex[:12]}"
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    log = structlog.get_logger("api")
    start_time = time.monotonic()
    log.info("Request received", method=request.method, path=request.url.path)

    try:
        response = await call_next(request)
    except Exception as e:
        log.exception("Request failed", path=request.url.path, error=str(e))
        structlog.contextvars.clear_contextvars()
        raise

    duration_ms = round((time.monotonic() - start_time) * 1000, 2)
    level = log.warning if response.status_code >= 500 else log.info
    level("Response sent", path=request.url.path, status_code=response.status_code,
          duration_ms=duration_ms)
    response.headers[REQUEST_ID_HEADER] = request_id
    structlog.contextvars.clear_contextvars()
    return response

# Get a configured logger
def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """Get a pre-configured structlog logger."""
    return structlog.get_logger(name)
