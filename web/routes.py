import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

import config
from controllers.background_job_runner import BackgroundJobRunner
from controllers.extraction_orchestrator import ExtractionOrchestrator
from core.exceptions import AllExtractionMethodsFailed
from core.job_store import JobStore
from models.job import JobStatus
from utils.logging import bind_listing_context, get_logger
from web.models import (
    BackgroundScrapeRequest,
    CreateJobRequest,
    JobCreatedResponse,
    JobResponse,
    ScrapeErrorResponse,
    ScrapePropertyRequest,
)

logger = get_logger("api")

# System monitoring metrics
SCRAPE_REQUESTS = Counter('scrape_requests_total', 'Total number of scrape requests', ['mode', 'outcome'])
SCRAPE_DURATION = Histogram('scrape_duration_seconds', 'Time spent extracting a listing', ['mode'])

router = APIRouter()


# Dependencies, populated on app.state by the application lifespan
def get_orchestrator(request: Request) -> ExtractionOrchestrator:
    return request.app.state.orchestrator


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_job_runner(request: Request) -> BackgroundJobRunner:
    return request.app.state.job_runner


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Health check endpoint for monitoring systems."""
    services = {
        service.name: service.get_service_health()
        for service in getattr(request.app.state, "services", [])
    }
    healthy = all(health["status"] == "healthy" for health in services.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "services": services,
        "app": config.APP_NAME,
        "version": config.APP_VERSION,
        "config": config.get_config(),
    }


@router.get("/metrics", status_code=status.HTTP_200_OK)
async def metrics():
    """Prometheus metrics exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.post("/api/scrape-property", status_code=status.HTTP_200_OK,
             responses={500: {"model": ScrapeErrorResponse}})
async def scrape_property(payload: Optional[ScrapePropertyRequest] = None,
                          orchestrator: ExtractionOrchestrator = Depends(get_orchestrator)):
    """Extract one listing synchronously and return the PropertyRecord."""
    url = (payload.url or "").strip() if payload else ""
    if not url:
        SCRAPE_REQUESTS.labels(mode='sync', outcome='invalid').inc()
        return _error(status.HTTP_400_BAD_REQUEST, "URL is required")

    bind_listing_context(url)
    logger.info("Received scrape request", url=url)
    start_time = time.time()
    try:
        record = await orchestrator.extract(url)
    except AllExtractionMethodsFailed as e:
        SCRAPE_REQUESTS.labels(mode='sync', outcome='failed').inc()
        logger.warning("Scrape request failed", url=url, details=e.details)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=e.to_dict())
    finally:
        SCRAPE_DURATION.labels(mode='sync').observe(time.time() - start_time)

    SCRAPE_REQUESTS.labels(mode='sync', outcome='completed').inc()
    return record.to_dict()


@router.post("/api/scrape-jobs", response_model=JobCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_job(payload: Optional[CreateJobRequest] = None,
                     job_store: JobStore = Depends(get_job_store)):
    """Create a pending job for callers without their own job storage."""
    url = (payload.url or "").strip() if payload else ""
    if not url:
        return _error(status.HTTP_400_BAD_REQUEST, "URL is required")
    job = await job_store.create(url)
    logger.info("Created job", job_id=job["id"], url=url)
    return {"jobId": job["id"], "status": job["status"]}


@router.get("/api/scrape-jobs/{job_id}", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def get_job(job_id: str, job_store: JobStore = Depends(get_job_store)):
    """Poll a background job."""
    job = await job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("/api/scrape-background", status_code=status.HTTP_202_ACCEPTED)
async def scrape_background(background_tasks: BackgroundTasks,
                            payload: Optional[BackgroundScrapeRequest] = None,
                            job_store: JobStore = Depends(get_job_store),
                            runner: BackgroundJobRunner = Depends(get_job_runner)):
    """Fire-and-forget trigger; the result is polled from the job store."""
    job_id = (payload.job_id or "").strip() if payload else ""
    url = (payload.url or "").strip() if payload else ""
    if not job_id or not url:
        return _error(status.HTTP_400_BAD_REQUEST, "jobId and URL are required")

    bind_listing_context(url, job_id=job_id)
    job = await job_store.ensure(job_id, url)
    if job["status"] != JobStatus.PENDING:
        return _error(status.HTTP_409_CONFLICT, f"Job is already {job['status']}")

    SCRAPE_REQUESTS.labels(mode='background', outcome='accepted').inc()
    background_tasks.add_task(run_background_job, runner, job_id, url)
    logger.info("Accepted background job", job_id=job_id, url=url)
    return {"jobId": job_id, "status": "accepted"}


async def run_background_job(runner: BackgroundJobRunner, job_id: str, url: str) -> None:
    start_time = time.time()
    try:
        record = await runner.run(job_id, url)
    finally:
        SCRAPE_DURATION.labels(mode='background').observe(time.time() - start_time)
    SCRAPE_REQUESTS.labels(mode='background', outcome='completed' if record else 'failed').inc()
