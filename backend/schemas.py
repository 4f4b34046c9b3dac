"""
Pydantic schemas for report job payloads
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class JobQueued(BaseModel):
    """Returned immediately by the analyze endpoint"""

    status: str = "queued"
    job_id: str
    title: str
    files: Dict[str, Optional[str]] = Field(
        ...,
        description="Uploaded filename per logistics table",
    )
    callback_url: Optional[str] = None


class JobResult(BaseModel):
    """Summary of a finished report job, also POSTed to the callback URL"""

    status: str = "completed"
    job_id: str
    filename: str
    download_url: str
    row_counts: Dict[str, int]
    on_time_percentage: Optional[float] = Field(
        None,
        description="Overall on-time delivery percentage; null with no orders",
    )
    quality_warnings: int = 0
    quality_errors: int = 0
    completed_at: datetime = Field(default_factory=datetime.now)


class JobFailed(BaseModel):
    status: str = "failed"
    job_id: str
    error: str
    failed_at: datetime = Field(default_factory=datetime.now)


class LatestReport(BaseModel):
    status: str = "ok"
    filename: str
    markdown: str
    data: Optional[dict] = None
    retrieved_at: datetime = Field(default_factory=datetime.now)
