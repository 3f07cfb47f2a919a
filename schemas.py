"""
Pydantic models for data validation in the AI Video Generator.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


AspectRatio = Literal["16:9", "9:16", "1:1"]
Platform = Literal["youtube", "tiktok", "instagram", "x"]
JobStatusValue = Literal["queued", "running", "done", "failed"]


class ProviderFlags(BaseModel):
    """Which external capabilities a job should use."""
    model_config = ConfigDict(frozen=True)

    speechify: bool = True  # narration
    sora: bool = True  # visuals
    veo: bool = True  # composition


class JobRequest(BaseModel):
    """Request model for generating a single video."""
    model_config = ConfigDict(frozen=True)

    topic: str
    ratio: AspectRatio = "16:9"
    duration: int = 60
    providers: ProviderFlags = Field(default_factory=ProviderFlags)
    platforms: List[Platform] = Field(default_factory=list)


class JobResponse(BaseModel):
    """Response when submitting a background generation job."""
    job_id: str
    status: JobStatusValue  # always "queued" on creation


class StatusResponse(BaseModel):
    """Response for checking background job status."""
    job_id: str
    status: JobStatusValue
    logs: List[str] = Field(default_factory=list)
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    caption: Optional[str] = None
    error: Optional[str] = None


class ModerationRejection(BaseModel):
    """Body of a moderation rejection."""
    reason: str
    message: str


class RejectionResponse(BaseModel):
    """Error body returned when moderation refuses a topic."""
    detail: ModerationRejection
