"""
Configuration settings for the PropertyScrape application.
This file contains all configurable parameters and settings.
"""

import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

def get_env_bool(key: str, default: bool = False) -> bool:
    """Convert environment variable to boolean."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')

def get_env_int(key: str, default: int) -> int:
    """Convert environment variable to integer."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default

def get_env_float(key: str, default: float) -> float:
    """Convert environment variable to float."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default

# Environment Configuration
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = get_env_bool("DEBUG", ENVIRONMENT == "development")

# Structured extraction service (Firecrawl-compatible)
FIRECRAWL_API_KEY = os.getenv("FIRECRAWL_API_KEY")
FIRECRAWL_API_URL = os.getenv("FIRECRAWL_API_URL", "https://api.firecrawl.dev")

# Validate required API keys only in production
if not FIRECRAWL_API_KEY and ENVIRONMENT == "production":
    raise ValueError("FIRECRAWL_API_KEY environment variable is required in production mode")

# Timeouts (seconds)
AGENT_TIMEOUT_SECONDS = get_env_float("AGENT_TIMEOUT_SECONDS", 120.0)
# The software timeout layered over the agent call is always longer than the agent's own
AGENT_SOFT_TIMEOUT_GRACE_SECONDS = get_env_float("AGENT_SOFT_TIMEOUT_GRACE_SECONDS", 5.0)
AGENT_POLL_INTERVAL_SECONDS = get_env_float("AGENT_POLL_INTERVAL_SECONDS", 2.0)
SCRAPE_TIMEOUT_SECONDS = get_env_float("SCRAPE_TIMEOUT_SECONDS", 60.0)
FETCH_TIMEOUT_SECONDS = get_env_float("FETCH_TIMEOUT_SECONDS", 30.0)

# Extraction limits
MAX_IMAGES = get_env_int("MAX_IMAGES", 15)
MAX_FEATURES = get_env_int("MAX_FEATURES", 15)
MAX_DESCRIPTION_LENGTH = get_env_int("MAX_DESCRIPTION_LENGTH", 1500)

# Translation (optional, best-effort)
TRANSLATION_ENABLED = get_env_bool("TRANSLATION_ENABLED", False)
TRANSLATION_API_URL = os.getenv("TRANSLATION_API_URL", "https://api.mymemory.translated.net/get")
TRANSLATION_SOURCE_LANG = os.getenv("TRANSLATION_SOURCE_LANG", "es")
TRANSLATION_TARGET_LANG = os.getenv("TRANSLATION_TARGET_LANG", "en")
TRANSLATION_TIMEOUT_SECONDS = get_env_float("TRANSLATION_TIMEOUT_SECONDS", 15.0)

# Server Settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = get_env_int("PORT", 5000)

# Security Settings
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else ["*"]

# Database Settings
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///propertyscrape.db")
DATABASE_CONFIG = {
    'pool_recycle': get_env_int("DB_POOL_RECYCLE", 3600),
    'echo': get_env_bool("DB_ECHO", False)  # Set to True for SQL query logging
}

# Monitoring & Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
METRICS_ENABLED = get_env_bool("METRICS_ENABLED", True)

# Application settings
APP_NAME = "PropertyScrape"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Real-estate listing extraction service"

def get_config() -> Dict[str, Any]:
    """Get the full application configuration."""
    return {
        "app": {
            "name": APP_NAME,
            "version": APP_VERSION,
            "description": APP_DESCRIPTION
        },
        "server": {
            "host": HOST,
            "port": PORT,
            "debug": DEBUG
        },
        "agent": {
            "api_url": FIRECRAWL_API_URL,
            "api_key_configured": bool(FIRECRAWL_API_KEY),
            "timeout_seconds": AGENT_TIMEOUT_SECONDS,
            "soft_timeout_seconds": AGENT_TIMEOUT_SECONDS + AGENT_SOFT_TIMEOUT_GRACE_SECONDS,
            "poll_interval_seconds": AGENT_POLL_INTERVAL_SECONDS
        },
        "fetcher": {
            "timeout_seconds": FETCH_TIMEOUT_SECONDS,
            "scrape_timeout_seconds": SCRAPE_TIMEOUT_SECONDS
        },
        "extraction": {
            "max_images": MAX_IMAGES,
            "max_features": MAX_FEATURES,
            "max_description_length": MAX_DESCRIPTION_LENGTH
        },
        "translation": {
            "enabled": TRANSLATION_ENABLED,
            "api_url": TRANSLATION_API_URL,
            "source_lang": TRANSLATION_SOURCE_LANG,
            "target_lang": TRANSLATION_TARGET_LANG
        }
    }
