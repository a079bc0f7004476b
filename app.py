# app.py - PropertyScrape Application
# Real-estate listing extraction service: structured extraction agent with an
# HTML fallback, image harvesting and privacy scrubbing

from contextlib import asynccontextmanager

# FastAPI for the web framework
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# Import our configuration
import config

# Import logging utilities
from utils.logging import log_request_middleware, get_logger

# Setup logger
logger = get_logger("app")

# Import our components
from controllers.background_job_runner import BackgroundJobRunner
from controllers.extraction_orchestrator import ExtractionOrchestrator
from core.job_store import SQLAlchemyJobStore
from extraction.dom_extractor import DOMExtractor
from extraction.image_harvester import ImageHarvester
from models.base import init_db
from utils.http_client import OptimizedHTTPClient
from web.routes import router as api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    logger.info("Initializing services on startup...")
    init_db()

    http_client = OptimizedHTTPClient()
    job_store = SQLAlchemyJobStore()
    dom_extractor = DOMExtractor()
    image_harvester = ImageHarvester()
    services = [dom_extractor, image_harvester]
    for service in services:
        service.initialize()

    app.state.http_client = http_client
    app.state.job_store = job_store
    app.state.services = services
    app.state.orchestrator = ExtractionOrchestrator(
        http_client=http_client, dom_extractor=dom_extractor, image_harvester=image_harvester
    )
    app.state.job_runner = BackgroundJobRunner(
        job_store, http_client=http_client, dom_extractor=dom_extractor, image_harvester=image_harvester
    )

    if not config.FIRECRAWL_API_KEY:
        logger.warning("FIRECRAWL_API_KEY is not set; every request will use the HTML fallback")
    logger.info("All services initialized successfully")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down services...")
    for service in services:
        service.shutdown()
    await http_client.close()
    logger.info("All services shut down successfully")


# Initialize FastAPI app with metadata and lifespan handler
app = FastAPI(
    title=config.APP_NAME,
    description=config.APP_DESCRIPTION,
    version=config.APP_VERSION,
    docs_url=None if config.ENVIRONMENT == "production" else "/docs",
    redoc_url=None if config.ENVIRONMENT == "production" else "/redoc",
    openapi_url=None if config.ENVIRONMENT == "production" else "/openapi.json",
    lifespan=lifespan
)


# Configure security headers middleware
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)

    # Add security headers in production
    if config.ENVIRONMENT == "production":
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Add GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Add request logging middleware
app.add_middleware(BaseHTTPMiddleware, dispatch=log_request_middleware)

# Include our API routes
app.include_router(api_router)


# Main function to run the application
if __name__ == "__main__":
    import argparse
    import uvicorn

    # Parse command line arguments
    parser = argparse.ArgumentParser(description=f"Start {config.APP_NAME} server")
    parser.add_argument("--host", default=config.HOST, help=f"Host to bind to (default: {config.HOST})")
    parser.add_argument("--port", type=int, default=config.PORT, help=f"Port to bind to (default: {config.PORT})")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"], help="Log level")

    args = parser.parse_args()

    print(f"Starting {config.APP_NAME} v{config.APP_VERSION}...")
    print(f"Structured extraction service: {config.FIRECRAWL_API_URL} "
          f"({'configured' if config.FIRECRAWL_API_KEY else 'no API key, HTML fallback only'})")
    print(f"Translation: {'Enabled' if config.TRANSLATION_ENABLED else 'Disabled'}")
    print(f"Server running at http://{args.host}:{args.port}")

    uvicorn.run(
        "app:app" if args.reload else app,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level
    )
