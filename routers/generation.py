"""
Router for video generation endpoints.
Handles job submission, status polling, cancellation and listing.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from exceptions import ModerationRejectedException, NotFoundException
from models import JobStatus
from registry import JobRegistry, get_registry
from schemas import JobRequest, JobResponse, RejectionResponse, StatusResponse
from services import ModerationService, validate_job_request
from tasks import JobWorker


# Create the router
router = APIRouter(tags=["generation"])


def get_worker(request: Request) -> JobWorker:
    return request.app.state.worker


def get_moderation(request: Request) -> ModerationService:
    return request.app.state.moderation


@router.post(
    "/generate-video/",
    response_model=JobResponse,
    responses={422: {"model": RejectionResponse, "description": "Topic rejected by content moderation"}},
)
async def generate_video(
    request: JobRequest,
    registry: JobRegistry = Depends(get_registry),
    worker: JobWorker = Depends(get_worker),
    moderation: ModerationService = Depends(get_moderation),
):
    """
    Creates a job record in the registry, starts the worker task,
    and immediately returns a job ID.
    """
    validate_job_request(request)

    verdict = moderation.check(request.topic)
    if not verdict.allowed:
        raise ModerationRejectedException(reason=verdict.reason)

    job = registry.create(request)
    worker.schedule_job(job.id)
    logging.info(f"✨ Job {job.id} submitted for topic: '{request.topic}'")
    return {"job_id": job.id, "status": job.status.value}


@router.get("/task-status/{job_id}", response_model=StatusResponse)
async def get_task_status(job_id: str, registry: JobRegistry = Depends(get_registry)):
    """
    Returns the current snapshot of a job.
    """
    job = registry.get(job_id)
    if not job:
        raise NotFoundException("Job not found.")
    return job.to_dict()


@router.post("/cancel-job/{job_id}", response_model=StatusResponse)
async def cancel_job(job_id: str, registry: JobRegistry = Depends(get_registry)):
    """
    Stops a queued or running job. Finished jobs are returned unchanged.
    """
    job = registry.get(job_id)
    if not job:
        raise NotFoundException("Job not found.")
    if registry.cancel(job_id):
        # Let the task record its own failure before answering.
        await asyncio.wait({job.task}, timeout=5)
    return job.to_dict()


@router.get("/jobs/", response_model=List[StatusResponse])
async def list_jobs(
    status: Optional[JobStatus] = None,
    limit: int = Query(default=50, ge=1, le=200),
    registry: JobRegistry = Depends(get_registry),
):
    """Newest jobs first, optionally filtered by status."""
    return [job.to_dict() for job in registry.list(status=status, limit=limit)]
