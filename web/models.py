from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScrapePropertyRequest(BaseModel):
    """Request body for the synchronous extraction endpoint"""
    url: Optional[str] = None


class CreateJobRequest(BaseModel):
    """Request body for creating a background job"""
    url: Optional[str] = None


class BackgroundScrapeRequest(BaseModel):
    """Request body that triggers a background job; accepts ``jobId`` or ``job_id``"""
    model_config = ConfigDict(populate_by_name=True)

    job_id: Optional[str] = Field(default=None, alias="jobId")
    url: Optional[str] = None


class JobCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: str


class ScrapeErrorResponse(BaseModel):
    """Body returned when every extraction method failed"""
    error: str
    debugLog: List[str] = []
    details: Optional[str] = None


class JobResponse(BaseModel):
    id: str
    url: str
    status: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
